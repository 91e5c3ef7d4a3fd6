"""
Feedback Domain

💬 User Feedback:
Improvement requests, problem reports and other remarks submitted by users,
tracked through a simple status workflow.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator
from sqlmodel import Field as ColumnField
from sqlmodel import SQLModel

from ..core.criteria import Criteria
from ..core.identifier import Identifier
from ..core.query import QueryFilter, equals
from ..core.sort import Sort, SortDirection
from ..core.timestamps import UtcDatetime, utcnow
from ..persistence.interface import Record
from ..persistence.repository import Repository
from .common import DomainEntity, ensure_text_length


class FeedbackIdentifier(Identifier):
    """Identifier of a feedback entry"""


class FeedbackType(str, Enum):
    IMPROVEMENT = "IMPROVEMENT"
    PROBLEM = "PROBLEM"
    QUESTION = "QUESTION"
    OTHER = "OTHER"


class FeedbackStatus(str, Enum):
    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    NOT_NECESSARY = "NOT_NECESSARY"


class FeedbackSort(Sort):
    CREATED_AT_ASC = ("created_at", SortDirection.ASC)
    CREATED_AT_DESC = ("created_at", SortDirection.DESC)
    UPDATED_AT_ASC = ("updated_at", SortDirection.ASC)
    UPDATED_AT_DESC = ("updated_at", SortDirection.DESC)


class FeedbackCriteria(Criteria):
    """Filter feedback by status and type"""

    sort_type = FeedbackSort

    status: Optional[FeedbackStatus] = None
    type: Optional[FeedbackType] = None
    sort: Optional[FeedbackSort] = None

    def filters(self) -> List[QueryFilter]:
        result = []
        if self.status is not None:
            result.append(equals("status", self.status.value))
        if self.type is not None:
            result.append(equals("type", self.type.value))
        return result


class Feedback(DomainEntity):
    identifier: FeedbackIdentifier
    type: FeedbackType
    status: FeedbackStatus = FeedbackStatus.WAITING
    content: str
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str) -> str:
        return ensure_text_length(value, "content")


class FeedbackRecord(SQLModel, table=True):
    __tablename__ = "feedbacks"

    identifier: str = ColumnField(primary_key=True, max_length=36)
    type: str = ColumnField(index=True, max_length=16)
    status: str = ColumnField(index=True, max_length=16)
    content: str = ColumnField(max_length=1000)
    created_at: datetime = ColumnField(index=True)
    updated_at: datetime = ColumnField(index=True)


class FeedbackRepository(Repository[Feedback, FeedbackIdentifier, FeedbackCriteria]):
    entity_type = Feedback
    identifier_type = FeedbackIdentifier
    criteria_type = FeedbackCriteria
    record_table = FeedbackRecord
    filterable_fields = ("status", "type")

    def to_record(self, entity: Feedback) -> Record:
        return {
            "identifier": str(entity.identifier),
            "type": entity.type.value,
            "status": entity.status.value,
            "content": entity.content,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def from_record(self, record: Record) -> Feedback:
        return Feedback(
            identifier=FeedbackIdentifier(record["identifier"]),
            type=FeedbackType(record["type"]),
            status=FeedbackStatus(record["status"]),
            content=record["content"],
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )


__all__ = [
    "Feedback", "FeedbackIdentifier", "FeedbackType", "FeedbackStatus",
    "FeedbackSort", "FeedbackCriteria", "FeedbackRecord", "FeedbackRepository",
]
