"""
Fieldbook Domains

Entities, identifiers, sorts, criteria, record tables and repositories for
daily reports, feedback, visits and transaction histories.
"""

from .common import Address, CustomerIdentifier, PhoneNumber, ScheduleIdentifier, UserIdentifier
from .daily_report import (
    DailyReport, DailyReportCriteria, DailyReportIdentifier, DailyReportRecord,
    DailyReportRepository, DailyReportSort,
)
from .feedback import (
    Feedback, FeedbackCriteria, FeedbackIdentifier, FeedbackRecord,
    FeedbackRepository, FeedbackSort, FeedbackStatus, FeedbackType,
)
from .transaction_history import (
    TransactionHistory, TransactionHistoryCriteria, TransactionHistoryIdentifier,
    TransactionHistoryRecord, TransactionHistoryRepository, TransactionHistorySort,
    TransactionType,
)
from .visit import (
    Visit, VisitCriteria, VisitIdentifier, VisitRecord, VisitRepository,
    VisitResult, VisitSort,
)

# Record tables served by SQL backends
RECORD_TABLES = (DailyReportRecord, FeedbackRecord, VisitRecord, TransactionHistoryRecord)

REPOSITORY_TYPES = (
    DailyReportRepository, FeedbackRepository, VisitRepository, TransactionHistoryRepository,
)

__all__ = [
    "Address", "CustomerIdentifier", "PhoneNumber", "ScheduleIdentifier", "UserIdentifier",
    "DailyReport", "DailyReportCriteria", "DailyReportIdentifier", "DailyReportRecord",
    "DailyReportRepository", "DailyReportSort",
    "Feedback", "FeedbackCriteria", "FeedbackIdentifier", "FeedbackRecord",
    "FeedbackRepository", "FeedbackSort", "FeedbackStatus", "FeedbackType",
    "TransactionHistory", "TransactionHistoryCriteria", "TransactionHistoryIdentifier",
    "TransactionHistoryRecord", "TransactionHistoryRepository", "TransactionHistorySort",
    "TransactionType",
    "Visit", "VisitCriteria", "VisitIdentifier", "VisitRecord", "VisitRepository",
    "VisitResult", "VisitSort",
    "RECORD_TABLES", "REPOSITORY_TYPES",
]
