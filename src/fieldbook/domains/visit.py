"""
Visit Domain

🚪 Door-to-Door Visits:
A salesman's visit to an address and its outcome. Visits that end in a
contract must record the phone number of the household.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import field_validator, model_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field as ColumnField
from sqlmodel import SQLModel

from ..core.criteria import Criteria
from ..core.identifier import Identifier
from ..core.query import QueryFilter, equals
from ..core.sort import Sort, SortDirection
from ..core.timestamps import UtcDatetime
from ..persistence.interface import Record
from ..persistence.repository import EntitySequence, Repository
from .common import (
    Address, DomainEntity, PhoneNumber, UserIdentifier,
    ensure_not_future, ensure_text_length,
)


class VisitIdentifier(Identifier):
    """Identifier of a visit"""


class VisitResult(str, Enum):
    CONTRACT = "CONTRACT"
    NO_CONTRACT = "NO_CONTRACT"


class VisitSort(Sort):
    VISITED_AT_ASC = ("visited_at", SortDirection.ASC)
    VISITED_AT_DESC = ("visited_at", SortDirection.DESC)


class VisitCriteria(Criteria):
    """Filter visits by the visiting user"""

    sort_type = VisitSort

    user: Optional[UserIdentifier] = None
    sort: Optional[VisitSort] = None

    def filters(self) -> List[QueryFilter]:
        if self.user is None:
            return []
        return [equals("user", str(self.user))]


class Visit(DomainEntity):
    identifier: VisitIdentifier
    user: UserIdentifier
    visited_at: UtcDatetime
    address: Address
    phone: Optional[PhoneNumber] = None
    has_graveyard: bool = False
    note: Optional[str] = None
    result: VisitResult

    @field_validator("visited_at")
    @classmethod
    def _check_visited_at(cls, value: datetime) -> datetime:
        return ensure_not_future(value, "Visit date must be in the past")

    @field_validator("note")
    @classmethod
    def _check_note(cls, value: Optional[str]) -> Optional[str]:
        return ensure_text_length(value, "note")

    @model_validator(mode="after")
    def _check_contract_phone(self) -> "Visit":
        if self.result == VisitResult.CONTRACT and self.phone is None:
            raise ValueError("Phone number must be set when the result is contract")
        return self


class VisitRecord(SQLModel, table=True):
    __tablename__ = "visits"

    identifier: str = ColumnField(primary_key=True, max_length=36)
    user: str = ColumnField(index=True, max_length=36)
    visited_at: datetime = ColumnField(index=True)
    address: Dict[str, Any] = ColumnField(sa_column=Column(JSON, nullable=False))
    phone_number: Optional[str] = ColumnField(default=None, max_length=16)
    has_graveyard: bool = ColumnField(default=False)
    note: Optional[str] = ColumnField(default=None, max_length=1000)
    result: str = ColumnField(max_length=16)


class VisitRepository(Repository[Visit, VisitIdentifier, VisitCriteria]):
    entity_type = Visit
    identifier_type = VisitIdentifier
    criteria_type = VisitCriteria
    record_table = VisitRecord
    filterable_fields = ("user",)

    def of_user(self, user: Any) -> EntitySequence[Visit]:
        """Visits made by ``user``"""
        return self.list(VisitCriteria(user=UserIdentifier.parse(user)))

    def to_record(self, entity: Visit) -> Record:
        return {
            "identifier": str(entity.identifier),
            "user": str(entity.user),
            "visited_at": entity.visited_at,
            "address": entity.address.model_dump(),
            "phone_number": str(entity.phone) if entity.phone is not None else None,
            "has_graveyard": entity.has_graveyard,
            "note": entity.note,
            "result": entity.result.value,
        }

    def from_record(self, record: Record) -> Visit:
        phone = record["phone_number"]
        return Visit(
            identifier=VisitIdentifier(record["identifier"]),
            user=UserIdentifier(record["user"]),
            visited_at=record["visited_at"],
            address=Address(**record["address"]),
            phone=PhoneNumber.parse(phone) if phone is not None else None,
            has_graveyard=bool(record["has_graveyard"]),
            note=record["note"],
            result=VisitResult(record["result"]),
        )


__all__ = [
    "Visit", "VisitIdentifier", "VisitResult", "VisitSort", "VisitCriteria",
    "VisitRecord", "VisitRepository",
]
