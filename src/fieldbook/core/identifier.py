"""
Identifier Value Objects

🔑 Opaque Entity Keys:
Identifiers wrap a UUID string, compare by value and expose a stable string
form used as the storage key. Malformed values are rejected at construction
with InvalidIdentifier, so they never reach a backend.
"""

import os
import re
import time
import uuid
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .errors import InvalidIdentifier

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-8][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)

IdentifierType = TypeVar("IdentifierType", bound="Identifier")


def uuid7() -> uuid.UUID:
    """Create a time-ordered version 7 UUID"""
    timestamp_ms = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")

    value = (timestamp_ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= ((rand >> 62) & 0xFFF) << 64
    value |= 0b10 << 62
    value |= rand & ((1 << 62) - 1)
    return uuid.UUID(int=value)


class Identifier(BaseModel):
    """
    Base class for all entity identifiers.

    Subclass once per entity type. Two identifiers are equal only when they
    share both class and value, so a FeedbackIdentifier never matches a
    VisitIdentifier carrying the same UUID.
    """

    model_config = ConfigDict(frozen=True)

    value: str

    def __init__(self, value: Any = None, **data: Any):
        try:
            super().__init__(value=value, **data)
        except ValidationError as error:
            reason = error.errors()[0].get("msg") if error.errors() else None
            raise InvalidIdentifier(type(self).__name__, value, reason) from error

    @model_validator(mode="before")
    @classmethod
    def _wrap_raw_string(cls, data: Any) -> Any:
        # Nested identifiers (criteria fields, entity fields) may arrive as bare strings
        if isinstance(data, str):
            return {"value": data}
        return data

    @field_validator("value")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if not UUID_PATTERN.match(value):
            raise ValueError("value is not a valid UUID")
        return value.lower()

    @classmethod
    def parse(cls: Type[IdentifierType], raw: Any) -> IdentifierType:
        """Build an identifier from raw input, passing instances through"""
        if isinstance(raw, cls):
            return raw
        return cls(raw)

    @classmethod
    def generate(cls: Type[IdentifierType]) -> IdentifierType:
        """Issue a new identifier"""
        return cls(str(uuid7()))

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


__all__ = ["Identifier", "IdentifierType", "UUID_PATTERN", "uuid7"]
