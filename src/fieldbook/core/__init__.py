"""
Fieldbook Core

Value objects shared by every domain: identifiers, sorts, criteria, the
backend query model and the error taxonomy.
"""

from .criteria import Criteria, DateTimeRange
from .errors import (
    Conflict,
    FieldbookError,
    InvalidCriteria,
    InvalidIdentifier,
    NotFound,
    PersistenceError,
    RepositoryConfigurationError,
    ValidationError,
)
from .identifier import Identifier, uuid7
from .query import KeysetPosition, QueryFilter, QueryOperator, QueryOptions, SortCriteria
from .sort import Sort, SortDirection

__all__ = [
    "Criteria", "DateTimeRange",
    "FieldbookError", "InvalidIdentifier", "InvalidCriteria", "NotFound", "Conflict",
    "PersistenceError", "RepositoryConfigurationError", "ValidationError",
    "Identifier", "uuid7",
    "KeysetPosition", "QueryFilter", "QueryOperator", "QueryOptions", "SortCriteria",
    "Sort", "SortDirection",
]
