"""
Daily Report Domain

📝 Daily Reports:
A salesman's report for one day, listing the schedules worked and the visits
made. Reports are drafted first and submitted later.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field as ColumnField
from sqlmodel import SQLModel

from ..core.criteria import Criteria, DateTimeRange
from ..core.identifier import Identifier
from ..core.query import QueryFilter, equals
from ..core.sort import Sort, SortDirection
from ..core.timestamps import UtcDatetime, utcnow
from ..persistence.interface import Record
from ..persistence.repository import Repository
from .common import DomainEntity, ScheduleIdentifier, UserIdentifier, ensure_not_future
from .visit import VisitIdentifier


class DailyReportIdentifier(Identifier):
    """Identifier of a daily report"""


class DailyReportSort(Sort):
    CREATED_AT_ASC = ("created_at", SortDirection.ASC)
    CREATED_AT_DESC = ("created_at", SortDirection.DESC)
    UPDATED_AT_ASC = ("updated_at", SortDirection.ASC)
    UPDATED_AT_DESC = ("updated_at", SortDirection.DESC)
    DATE_ASC = ("date", SortDirection.ASC)
    DATE_DESC = ("date", SortDirection.DESC)


class DailyReportCriteria(Criteria):
    """Filter daily reports by report date range, author and submission state"""

    sort_type = DailyReportSort

    date: Optional[DateTimeRange] = None
    user: Optional[UserIdentifier] = None
    is_submitted: Optional[bool] = None
    sort: Optional[DailyReportSort] = None

    def filters(self) -> List[QueryFilter]:
        result = []
        if self.date is not None:
            result.extend(self.date.filters("date"))
        if self.user is not None:
            result.append(equals("user", str(self.user)))
        if self.is_submitted is not None:
            result.append(equals("is_submitted", self.is_submitted))
        return result


class DailyReport(DomainEntity):
    identifier: DailyReportIdentifier
    user: UserIdentifier
    date: UtcDatetime
    schedules: List[ScheduleIdentifier] = Field(default_factory=list)
    visits: List[VisitIdentifier] = Field(default_factory=list)
    is_submitted: bool = False
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: datetime) -> datetime:
        return ensure_not_future(value, "Date must be in the past")

    def same_schedules(self, other: "DailyReport") -> bool:
        return set(self.schedules) == set(other.schedules)

    def same_visits(self, other: "DailyReport") -> bool:
        return set(self.visits) == set(other.visits)


class DailyReportRecord(SQLModel, table=True):
    __tablename__ = "daily_reports"

    identifier: str = ColumnField(primary_key=True, max_length=36)
    user: str = ColumnField(index=True, max_length=36)
    date: datetime = ColumnField(index=True)
    schedules: List[str] = ColumnField(sa_column=Column(JSON, nullable=False))
    visits: List[str] = ColumnField(sa_column=Column(JSON, nullable=False))
    is_submitted: bool = ColumnField(default=False, index=True)
    created_at: datetime = ColumnField(index=True)
    updated_at: datetime = ColumnField(index=True)


class DailyReportRepository(Repository[DailyReport, DailyReportIdentifier, DailyReportCriteria]):
    entity_type = DailyReport
    identifier_type = DailyReportIdentifier
    criteria_type = DailyReportCriteria
    record_table = DailyReportRecord
    filterable_fields = ("date", "user", "is_submitted")

    def to_record(self, entity: DailyReport) -> Record:
        return {
            "identifier": str(entity.identifier),
            "user": str(entity.user),
            "date": entity.date,
            "schedules": [str(schedule) for schedule in entity.schedules],
            "visits": [str(visit) for visit in entity.visits],
            "is_submitted": entity.is_submitted,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def from_record(self, record: Record) -> DailyReport:
        return DailyReport(
            identifier=DailyReportIdentifier(record["identifier"]),
            user=UserIdentifier(record["user"]),
            date=record["date"],
            schedules=[ScheduleIdentifier(value) for value in record["schedules"] or []],
            visits=[VisitIdentifier(value) for value in record["visits"] or []],
            is_submitted=bool(record["is_submitted"]),
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )


__all__ = [
    "DailyReport", "DailyReportIdentifier", "DailyReportSort", "DailyReportCriteria",
    "DailyReportRecord", "DailyReportRepository",
]
