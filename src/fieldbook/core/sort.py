"""
Sort Directives

Closed enumerations of the orderings an entity supports. Each member maps to
one (column, direction) pair; backends translate that pair into their own
ordering clause.
"""

from enum import Enum
from typing import Any, List, Type, TypeVar

from .errors import InvalidCriteria

SortType = TypeVar("SortType", bound="Sort")


class SortDirection(Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"


class Sort(Enum):
    """
    Base class for per-entity sort enumerations.

    Members are declared as ``NAME = ("column", SortDirection.X)``. Parsing
    happens by member name only; an unknown name fails immediately instead of
    silently falling back to an unordered query.
    """

    @property
    def column(self) -> str:
        return self.value[0]

    @property
    def direction(self) -> SortDirection:
        return self.value[1]

    @classmethod
    def names(cls) -> List[str]:
        return [member.name for member in cls]

    @classmethod
    def parse(cls: Type[SortType], raw: Any) -> SortType:
        """
        Resolve a member from an instance or a member name.

        Raises:
            InvalidCriteria: if ``raw`` names no member of this enumeration
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str) and raw in cls.__members__:
            return cls.__members__[raw]
        raise InvalidCriteria(
            cls.__name__, "sort",
            f"{raw!r} is not one of {', '.join(cls.names())}",
        )


__all__ = ["Sort", "SortDirection", "SortType"]
