"""
Backend Query Model

💾 Storage-Neutral Query Shape:
Criteria objects are translated into these plain structures before they
reach a storage backend. Backends only ever see field names, operators,
orderings and pagination bounds, never domain types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .sort import SortDirection


class QueryOperator(Enum):
    """Query operators for filtering"""
    EQUALS = "eq"
    NOT_EQUALS = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


@dataclass(frozen=True)
class QueryFilter:
    """Represents a single filter condition"""
    field: str
    operator: QueryOperator
    value: Any = None

    def __post_init__(self):
        if self.operator in (QueryOperator.IS_NULL, QueryOperator.IS_NOT_NULL):
            object.__setattr__(self, "value", None)
        elif self.value is None:
            raise ValueError(f"Value required for operator {self.operator}")


@dataclass(frozen=True)
class SortCriteria:
    """Represents sorting criteria"""
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class KeysetPosition:
    """
    Position of the last row of a page under a given ordering.

    Rows strictly after ``(value, key)`` in ``sort`` order (with the key
    ascending as tiebreaker) belong to the next page.
    """
    sort: Optional[SortCriteria]
    value: Any
    key: str


@dataclass
class QueryOptions:
    """Options for querying records"""
    filters: List[QueryFilter] = field(default_factory=list)
    sort_by: List[SortCriteria] = field(default_factory=list)
    key_field: str = "identifier"
    after: Optional[KeysetPosition] = None
    limit: Optional[int] = None
    offset: int = 0

    def add_filter(self, field: str, operator: QueryOperator, value: Any = None) -> 'QueryOptions':
        """Add a filter condition"""
        self.filters.append(QueryFilter(field, operator, value))
        return self

    def add_sort(self, field: str, direction: SortDirection = SortDirection.ASC) -> 'QueryOptions':
        """Add sorting criteria"""
        self.sort_by.append(SortCriteria(field, direction))
        return self

    def ordering(self) -> List[SortCriteria]:
        """Full ordering including the key tiebreaker, so results are deterministic"""
        ordering = [item for item in self.sort_by if item.field != self.key_field]
        ordering.append(SortCriteria(self.key_field, SortDirection.ASC))
        return ordering


def equals(field: str, value: Any) -> QueryFilter:
    """Create an equals filter"""
    return QueryFilter(field, QueryOperator.EQUALS, value)


def at_least(field: str, value: Any) -> QueryFilter:
    """Create a greater-than-or-equal filter"""
    return QueryFilter(field, QueryOperator.GREATER_THAN_OR_EQUAL, value)


def at_most(field: str, value: Any) -> QueryFilter:
    """Create a less-than-or-equal filter"""
    return QueryFilter(field, QueryOperator.LESS_THAN_OR_EQUAL, value)


__all__ = [
    "QueryOperator", "QueryFilter", "SortCriteria", "KeysetPosition", "QueryOptions",
    "equals", "at_least", "at_most",
]
