"""
Criteria Value Objects

🔍 Declarative Query Requests:
A Criteria describes *which* entities a caller wants, in what order and which
page of them, without saying anything about how the backend finds them. All
fields are optional; an absent filter means no constraint. Instances are
immutable and compare by value, so they can be cached or used as keys.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError, field_validator, model_validator

from .errors import InvalidCriteria
from .query import QueryFilter, at_least, at_most
from .sort import Sort
from .timestamps import UtcDatetime, to_utc

CriteriaType = TypeVar("CriteriaType", bound="Criteria")


def _as_invalid_criteria(owner: str, error: ValidationError) -> InvalidCriteria:
    """Collapse a pydantic ValidationError into the first offending field"""
    first = error.errors()[0] if error.errors() else {}
    location = first.get("loc") or ()
    field = ".".join(str(part) for part in location) or "criteria"
    reason = first.get("msg", str(error))
    if reason.startswith("Value error, "):
        reason = reason[len("Value error, "):]
    return InvalidCriteria(owner, field, reason)


class DateTimeRange(BaseModel):
    """Closed interval of datetimes; either bound may be open"""

    model_config = ConfigDict(frozen=True)

    start: Optional[UtcDatetime] = None
    end: Optional[UtcDatetime] = None

    def __init__(self, start: Optional[datetime] = None, end: Optional[datetime] = None, **data: Any):
        try:
            super().__init__(start=start, end=end, **data)
        except ValidationError as error:
            raise _as_invalid_criteria(type(self).__name__, error) from error

    @model_validator(mode="after")
    def _check_bounds(self) -> "DateTimeRange":
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError("end must not be earlier than start")
        return self

    def includes(self, moment: datetime) -> bool:
        moment = to_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def filters(self, field: str) -> List[QueryFilter]:
        """Translate the range into inclusive bound filters on ``field``"""
        result = []
        if self.start is not None:
            result.append(at_least(field, self.start))
        if self.end is not None:
            result.append(at_most(field, self.end))
        return result


class Criteria(BaseModel):
    """
    Base class for entity criteria.

    Subclasses declare their filter fields, set ``sort_type`` to the entity's
    Sort enumeration and implement ``filters()``. Pagination is either
    offset based (``offset``/``limit``) or keyset based (``cursor``/``limit``),
    never both.

    Raises:
        InvalidCriteria: on construction with a non-positive limit, a negative
            offset, an empty cursor, cursor combined with offset, or a sort
            that is not a member of ``sort_type``
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    sort_type: ClassVar[Optional[Type[Sort]]] = None

    sort: Optional[Any] = None
    offset: Optional[StrictInt] = None
    limit: Optional[StrictInt] = None
    cursor: Optional[str] = None

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as error:
            raise _as_invalid_criteria(type(self).__name__, error) from error

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, value: Any) -> Any:
        if value is None:
            return None
        if cls.sort_type is None:
            if isinstance(value, Sort):
                return value
            raise ValueError(f"{value!r} is not a sort")
        try:
            return cls.sort_type.parse(value)
        except InvalidCriteria as error:
            raise ValueError(error.details["reason"])

    @field_validator("limit")
    @classmethod
    def _check_limit(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("limit must be greater than 0")
        return value

    @field_validator("offset")
    @classmethod
    def _check_offset(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("offset must not be negative")
        return value

    @field_validator("cursor")
    @classmethod
    def _check_cursor(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("cursor must not be empty")
        return value

    @model_validator(mode="after")
    def _check_pagination(self) -> "Criteria":
        if self.cursor is not None and self.offset is not None:
            raise ValueError("cursor and offset cannot be combined")
        return self

    # Builders

    def _replace(self: CriteriaType, **changes: Any) -> CriteriaType:
        fields: Dict[str, Any] = {name: getattr(self, name) for name in type(self).model_fields}
        fields.update(changes)
        return type(self)(**fields)

    def with_sort(self: CriteriaType, sort: Any) -> CriteriaType:
        return self._replace(sort=sort)

    def paginate(self: CriteriaType, offset: int, limit: int) -> CriteriaType:
        return self._replace(offset=offset, limit=limit, cursor=None)

    def after(self: CriteriaType, cursor: str, limit: Optional[int] = None) -> CriteriaType:
        """Continue after a cursor token, keeping the current limit unless given"""
        return self._replace(cursor=cursor, offset=None, limit=limit if limit is not None else self.limit)

    def without_pagination(self: CriteriaType) -> CriteriaType:
        return self._replace(offset=None, limit=None, cursor=None)

    def filters(self) -> List[QueryFilter]:
        """Backend filters for the entity-specific fields"""
        return []

    @property
    def is_paginated(self) -> bool:
        return self.limit is not None or self.offset is not None or self.cursor is not None


# Export main components
__all__ = ["Criteria", "CriteriaType", "DateTimeRange"]
