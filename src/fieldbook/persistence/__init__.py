"""
Fieldbook Persistence

Storage backends, the backend registry and the generic criteria-based
repository every domain repository builds on.
"""

from .base import BackendMetrics, BaseBackend
from .interface import Record, StorageBackend
from .manager import (
    BackendConfig, BackendInitializationError, BackendNotFoundError,
    BackendRegistry,
)
from .memory import MemoryBackend
from .repository import DEFAULT_TIMEOUT, CursorCodec, EntitySequence, Repository
from .sql import SQLBackend, SQLConnectionConfig

__all__ = [
    "BackendMetrics", "BaseBackend",
    "Record", "StorageBackend",
    "BackendConfig", "BackendInitializationError", "BackendNotFoundError",
    "BackendRegistry",
    "MemoryBackend",
    "DEFAULT_TIMEOUT", "CursorCodec", "EntitySequence", "Repository",
    "SQLBackend", "SQLConnectionConfig",
]
