"""
Transaction History Domain

📒 Customer Transactions:
Work carried out for a customer (maintenance, cleaning, gravestone work) and
the salesman who handled it.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator
from sqlmodel import Field as ColumnField
from sqlmodel import SQLModel

from ..core.criteria import Criteria
from ..core.identifier import Identifier
from ..core.query import QueryFilter, equals
from ..core.sort import Sort, SortDirection
from ..core.timestamps import UtcDatetime, utcnow
from ..persistence.interface import Record
from ..persistence.repository import EntitySequence, Repository
from .common import (
    CustomerIdentifier, DomainEntity, UserIdentifier,
    ensure_not_future, ensure_text_length,
)


class TransactionHistoryIdentifier(Identifier):
    """Identifier of a transaction history entry"""


class TransactionType(str, Enum):
    MAINTENANCE = "MAINTENANCE"
    CLEANING = "CLEANING"
    GRAVESTONE_INSTALLATION = "GRAVESTONE_INSTALLATION"
    GRAVESTONE_REMOVAL = "GRAVESTONE_REMOVAL"
    GRAVESTONE_REPLACEMENT = "GRAVESTONE_REPLACEMENT"
    GRAVESTONE_REPAIR = "GRAVESTONE_REPAIR"
    OTHER = "OTHER"


class TransactionHistorySort(Sort):
    CREATED_AT_ASC = ("created_at", SortDirection.ASC)
    CREATED_AT_DESC = ("created_at", SortDirection.DESC)
    UPDATED_AT_ASC = ("updated_at", SortDirection.ASC)
    UPDATED_AT_DESC = ("updated_at", SortDirection.DESC)


class TransactionHistoryCriteria(Criteria):
    """Filter transaction histories by salesman and customer"""

    sort_type = TransactionHistorySort

    user: Optional[UserIdentifier] = None
    customer: Optional[CustomerIdentifier] = None
    sort: Optional[TransactionHistorySort] = None

    def filters(self) -> List[QueryFilter]:
        result = []
        if self.user is not None:
            result.append(equals("user", str(self.user)))
        if self.customer is not None:
            result.append(equals("customer", str(self.customer)))
        return result


class TransactionHistory(DomainEntity):
    identifier: TransactionHistoryIdentifier
    customer: CustomerIdentifier
    salesman: UserIdentifier
    type: TransactionType
    description: Optional[str] = None
    date: UtcDatetime
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: Optional[str]) -> Optional[str]:
        return ensure_text_length(value, "description")

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: datetime) -> datetime:
        return ensure_not_future(value, "Date must not be in the future")


class TransactionHistoryRecord(SQLModel, table=True):
    __tablename__ = "transaction_histories"

    identifier: str = ColumnField(primary_key=True, max_length=36)
    customer: str = ColumnField(index=True, max_length=36)
    user: str = ColumnField(index=True, max_length=36)
    type: str = ColumnField(max_length=32)
    description: Optional[str] = ColumnField(default=None, max_length=1000)
    date: datetime = ColumnField(index=True)
    created_at: datetime = ColumnField(index=True)
    updated_at: datetime = ColumnField(index=True)


class TransactionHistoryRepository(
    Repository[TransactionHistory, TransactionHistoryIdentifier, TransactionHistoryCriteria]
):
    entity_type = TransactionHistory
    identifier_type = TransactionHistoryIdentifier
    criteria_type = TransactionHistoryCriteria
    record_table = TransactionHistoryRecord
    filterable_fields = ("user", "customer")

    def of_user(self, user: Any) -> EntitySequence[TransactionHistory]:
        """Transactions handled by the salesman ``user``"""
        return self.list(TransactionHistoryCriteria(user=UserIdentifier.parse(user)))

    def of_customer(self, customer: Any) -> EntitySequence[TransactionHistory]:
        """Transactions carried out for ``customer``"""
        return self.list(TransactionHistoryCriteria(customer=CustomerIdentifier.parse(customer)))

    def to_record(self, entity: TransactionHistory) -> Record:
        return {
            "identifier": str(entity.identifier),
            "customer": str(entity.customer),
            "user": str(entity.salesman),
            "type": entity.type.value,
            "description": entity.description,
            "date": entity.date,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def from_record(self, record: Record) -> TransactionHistory:
        return TransactionHistory(
            identifier=TransactionHistoryIdentifier(record["identifier"]),
            customer=CustomerIdentifier(record["customer"]),
            salesman=UserIdentifier(record["user"]),
            type=TransactionType(record["type"]),
            description=record["description"],
            date=record["date"],
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )


__all__ = [
    "TransactionHistory", "TransactionHistoryIdentifier", "TransactionType",
    "TransactionHistorySort", "TransactionHistoryCriteria",
    "TransactionHistoryRecord", "TransactionHistoryRepository",
]
