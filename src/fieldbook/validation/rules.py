"""
Validation Rules

✅ Raw Input to Typed Values:
Each rule checks one raw input value (typically a string or integer from a
request) and converts it into the typed value a Criteria or repository call
expects. A failing rule returns a message template; the Validator renders it
through the configured Translator.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Type

from ..core.criteria import DateTimeRange
from ..core.identifier import UUID_PATTERN, Identifier
from ..core.sort import Sort
from ..core.timestamps import to_utc

INTEGER_PATTERN = re.compile(r"^-?\d+$")


class Rule(ABC):
    """Base class for validation rules"""

    @abstractmethod
    def failure(self, value: Any) -> Optional[str]:
        """Message template when ``value`` is rejected, None when it passes"""
        pass

    def convert(self, value: Any) -> Any:
        """Typed value for an accepted raw value"""
        return value

    def passes(self, value: Any) -> bool:
        return self.failure(value) is None


class ClosedEnumRule(Rule):
    """
    Accepts member names of one enumeration.

    A single generic rule serves every closed enumeration (statuses, types,
    sorts); instances of the enumeration pass through unchanged.
    """

    def __init__(self, enum_cls: Type[Enum]):
        self.enum_cls = enum_cls

    @property
    def names(self):
        return [member.name for member in self.enum_cls]

    def failure(self, value: Any) -> Optional[str]:
        if isinstance(value, self.enum_cls):
            return None
        if isinstance(value, str) and value in self.enum_cls.__members__:
            return None
        return f":attribute must be a valid enum value of `{', '.join(self.names)}`."

    def convert(self, value: Any) -> Enum:
        if issubclass(self.enum_cls, Sort):
            return self.enum_cls.parse(value)
        if isinstance(value, self.enum_cls):
            return value
        return self.enum_cls.__members__[value]


class IdentifierRule(Rule):
    def __init__(self, identifier_cls: Type[Identifier]):
        self.identifier_cls = identifier_cls

    def failure(self, value: Any) -> Optional[str]:
        if isinstance(value, self.identifier_cls):
            return None
        if not isinstance(value, str):
            return ":attribute must be a string."
        if not UUID_PATTERN.match(value):
            return ":attribute must be a valid identifier."
        return None

    def convert(self, value: Any) -> Identifier:
        return self.identifier_cls.parse(value)


class IntegerRule(Rule):
    """Integers (or integer strings) within optional inclusive bounds"""

    def __init__(self, min: Optional[int] = None, max: Optional[int] = None):
        self.min = min
        self.max = max

    @staticmethod
    def _as_int(value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and INTEGER_PATTERN.match(value.strip()):
            return int(value)
        return None

    def failure(self, value: Any) -> Optional[str]:
        number = self._as_int(value)
        if number is None:
            return ":attribute must be a integer."
        if self.min is not None and number < self.min:
            return f":attribute must be larger than or equals to {self.min}."
        if self.max is not None and number > self.max:
            return f":attribute must be smaller than or equals to {self.max}."
        return None

    def convert(self, value: Any) -> int:
        return self._as_int(value)


class StringRule(Rule):
    """Non-empty strings up to an optional maximum length"""

    def __init__(self, max_length: Optional[int] = None):
        self.max_length = max_length

    def failure(self, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return ":attribute must be a string."
        if len(value) == 0:
            return ":attribute must not be empty."
        if self.max_length is not None and len(value) > self.max_length:
            return f":attribute must have length lower than or equals to {self.max_length}."
        return None


class BooleanRule(Rule):
    TRUE_VALUES = ("true", "1")
    FALSE_VALUES = ("false", "0")

    def failure(self, value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int) and value in (0, 1):
            return None
        if isinstance(value, str) and value.lower() in self.TRUE_VALUES + self.FALSE_VALUES:
            return None
        return ":attribute must be a boolean."

    def convert(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.lower() in self.TRUE_VALUES
        return bool(value)


class DateTimeRangeRule(Rule):
    """Mappings with ``start`` and ``end`` keys holding ISO 8601 strings or null"""

    KEYS = ("start", "end")

    @staticmethod
    def _parse(raw: Optional[str]) -> Optional[datetime]:
        return datetime.fromisoformat(raw) if raw is not None else None

    def failure(self, value: Any) -> Optional[str]:
        if isinstance(value, DateTimeRange):
            return None
        if not isinstance(value, dict):
            return ":attribute must be an array."
        for key in self.KEYS:
            if key not in value:
                return f":attribute must have key `{key}`."
            if value[key] is None:
                continue
            if not isinstance(value[key], str):
                return f":attribute.{key} must be a string."
            try:
                self._parse(value[key])
            except ValueError:
                return f":attribute.{key} must obey the format `ISO 8601`."
        start, end = self._parse(value["start"]), self._parse(value["end"])
        if start is not None and end is not None:
            if to_utc(start) > to_utc(end):
                return ":attribute.start must be before :attribute.end."
        return None

    def convert(self, value: Any) -> DateTimeRange:
        if isinstance(value, DateTimeRange):
            return value
        return DateTimeRange(start=self._parse(value["start"]), end=self._parse(value["end"]))


__all__ = [
    "Rule", "ClosedEnumRule", "IdentifierRule", "IntegerRule", "StringRule",
    "BooleanRule", "DateTimeRangeRule",
]
