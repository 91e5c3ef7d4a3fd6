"""
Fieldbook - Criteria-Based Repositories for Field Sales Records

📒 Persist, Find, List and Delete:
Daily reports, feedback, visits and transaction histories behind one
repository contract. Callers describe what they want with immutable
criteria; a storage backend (in-memory or SQL) decides how to fetch it.
"""

from .core import (
    Conflict, Criteria, DateTimeRange, FieldbookError, Identifier, InvalidCriteria,
    InvalidIdentifier, NotFound, PersistenceError, RepositoryConfigurationError,
    Sort, SortDirection, ValidationError,
)
from .domains import (
    DailyReport, DailyReportCriteria, DailyReportIdentifier, DailyReportRepository,
    DailyReportSort, Feedback, FeedbackCriteria, FeedbackIdentifier, FeedbackRepository,
    FeedbackSort, FeedbackStatus, FeedbackType, TransactionHistory,
    TransactionHistoryCriteria, TransactionHistoryIdentifier, TransactionHistoryRepository,
    TransactionHistorySort, TransactionType, Visit, VisitCriteria, VisitIdentifier,
    VisitRepository, VisitResult, VisitSort,
)
from .persistence import EntitySequence, MemoryBackend, Repository, SQLBackend, StorageBackend

__version__ = "0.1.0"

__all__ = [
    # Core
    "Identifier", "Sort", "SortDirection", "Criteria", "DateTimeRange",
    "FieldbookError", "InvalidIdentifier", "InvalidCriteria", "NotFound", "Conflict",
    "PersistenceError", "RepositoryConfigurationError", "ValidationError",
    # Persistence
    "Repository", "EntitySequence", "StorageBackend", "MemoryBackend", "SQLBackend",
    # Domains
    "DailyReport", "DailyReportCriteria", "DailyReportIdentifier", "DailyReportRepository",
    "DailyReportSort",
    "Feedback", "FeedbackCriteria", "FeedbackIdentifier", "FeedbackRepository",
    "FeedbackSort", "FeedbackStatus", "FeedbackType",
    "TransactionHistory", "TransactionHistoryCriteria", "TransactionHistoryIdentifier",
    "TransactionHistoryRepository", "TransactionHistorySort", "TransactionType",
    "Visit", "VisitCriteria", "VisitIdentifier", "VisitRepository", "VisitResult", "VisitSort",
]
