"""
Shared Domain Types

🧩 Cross-Domain Value Objects:
Identifiers of aggregates referenced (but not owned) by the fieldbook
domains, plus the address and phone number value objects visits carry.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.identifier import Identifier
from ..core.timestamps import to_utc, utcnow

MAX_TEXT_LENGTH = 1000


class UserIdentifier(Identifier):
    """Identifier of a user (salesman, report author)"""


class CustomerIdentifier(Identifier):
    """Identifier of a customer"""


class ScheduleIdentifier(Identifier):
    """Identifier of a schedule entry"""


class DomainEntity(BaseModel):
    """Base class for persisted aggregates: immutable, strict about unknown fields"""

    model_config = ConfigDict(frozen=True, extra="forbid")


def ensure_not_future(value: datetime, message: str) -> datetime:
    """Reject moments later than now"""
    if to_utc(value) > utcnow():
        raise ValueError(message)
    return value


def ensure_text_length(value: Optional[str], field: str, limit: int = MAX_TEXT_LENGTH) -> Optional[str]:
    if value is not None and len(value) > limit:
        raise ValueError(f"{field} must be at most {limit} characters")
    return value


class PhoneNumber(BaseModel):
    """Domestic phone number split into area, local and subscriber parts"""

    model_config = ConfigDict(frozen=True)

    area_code: str = Field(pattern=r"^0\d{1,4}$")
    local_code: str = Field(pattern=r"^\d{1,4}$")
    subscriber_number: str = Field(pattern=r"^\d{3,5}$")

    @classmethod
    def parse(cls, raw: str) -> "PhoneNumber":
        """Parse the ``area-local-subscriber`` form produced by ``str()``"""
        parts = raw.split("-")
        if len(parts) != 3:
            raise ValueError(f"{raw!r} is not a phone number")
        return cls(area_code=parts[0], local_code=parts[1], subscriber_number=parts[2])

    def __str__(self) -> str:
        return f"{self.area_code}-{self.local_code}-{self.subscriber_number}"


POSTAL_CODE_PATTERN = re.compile(r"^\d{3}-\d{4}$")


class Address(BaseModel):
    """Postal address; prefectures are numbered 1 to 47"""

    model_config = ConfigDict(frozen=True)

    postal_code: str
    prefecture: int = Field(ge=1, le=47)
    city: str = Field(min_length=1)
    street: str = Field(min_length=1)
    building: Optional[str] = Field(default=None, min_length=1)

    @field_validator("postal_code")
    @classmethod
    def _check_postal_code(cls, value: str) -> str:
        if not POSTAL_CODE_PATTERN.match(value):
            raise ValueError("postal code must look like 123-4567")
        return value

    def __str__(self) -> str:
        building = f" {self.building}" if self.building is not None else ""
        return f"{self.postal_code} {self.prefecture} {self.city} {self.street}{building}"


__all__ = [
    "UserIdentifier", "CustomerIdentifier", "ScheduleIdentifier",
    "DomainEntity", "PhoneNumber", "Address",
    "MAX_TEXT_LENGTH", "ensure_not_future", "ensure_text_length",
]
