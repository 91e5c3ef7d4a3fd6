"""
Memory Backend - In-Memory Persistence Backend

🧠 Reference In-Memory Storage:
This module provides the reference storage backend used by tests and local
development. It keeps records in per-collection dictionaries guarded by a
re-entrant lock and evaluates queries with the shared helpers from
BaseBackend, so its ordering and pagination semantics define what every
other backend must reproduce.
"""

import copy
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional

from ..core.errors import Conflict
from ..core.query import QueryFilter, QueryOptions
from .base import BaseBackend
from .interface import Record


class MemoryBackend(BaseBackend):
    """
    In-memory storage backend.

    Features:
    - Per-collection dictionaries keyed by record key
    - Thread-safe operations (re-entrant lock)
    - Records are copied on the way in and out, so callers never share state
    - Optional clearing of all data on shutdown
    """

    def __init__(self, clear_on_shutdown: bool = True):
        super().__init__(clear_on_shutdown=clear_on_shutdown)
        self._storage: Dict[str, Dict[str, Record]] = defaultdict(dict)
        self._lock = threading.RLock()
        self.clear_on_shutdown = clear_on_shutdown

    async def _do_initialize(self):
        self._logger.debug("MemoryBackend ready")

    async def _do_shutdown(self):
        if self.clear_on_shutdown:
            self.clear()

    def clear(self, collection: Optional[str] = None):
        """Drop every record, or only the records of one collection"""
        with self._lock:
            if collection is None:
                self._storage.clear()
            else:
                self._storage.pop(collection, None)
            self._refresh_count()

    def _refresh_count(self):
        self.metrics.records_count = sum(len(records) for records in self._storage.values())

    # Core operations
    async def save(self, collection: str, key: str, record: Record) -> None:
        """Insert or replace a record"""
        start_time = self._record_operation_start()
        with self._lock:
            self._storage[collection][key] = copy.deepcopy(record)
            self._refresh_count()
        self._record_operation_success(start_time)

    async def insert(self, collection: str, key: str, record: Record) -> None:
        """Insert a record, failing if the key is taken"""
        start_time = self._record_operation_start()
        with self._lock:
            if key in self._storage[collection]:
                error = Conflict(collection, key)
                self._record_operation_failure(start_time, error)
                raise error
            self._storage[collection][key] = copy.deepcopy(record)
            self._refresh_count()
        self._record_operation_success(start_time)

    async def replace(self, collection: str, key: str, record: Record) -> bool:
        """Overwrite a record only if the key is present"""
        start_time = self._record_operation_start()
        with self._lock:
            replaced = key in self._storage[collection]
            if replaced:
                self._storage[collection][key] = copy.deepcopy(record)
        self._record_operation_success(start_time)
        return replaced

    async def load(self, collection: str, key: str) -> Optional[Record]:
        """Load a record by key"""
        start_time = self._record_operation_start()
        with self._lock:
            record = self._storage[collection].get(key)
            result = copy.deepcopy(record) if record is not None else None
        self._record_operation_success(start_time)
        return result

    async def delete(self, collection: str, key: str) -> bool:
        """Delete a record by key"""
        start_time = self._record_operation_start()
        with self._lock:
            removed = self._storage[collection].pop(key, None) is not None
            self._refresh_count()
        self._record_operation_success(start_time)
        return removed

    async def exists(self, collection: str, key: str) -> bool:
        """Check if a record exists"""
        with self._lock:
            return key in self._storage[collection]

    async def query(self, collection: str, options: QueryOptions) -> List[Record]:
        """Query records with filtering, ordering and pagination"""
        start_time = self._record_operation_start()
        try:
            with self._lock:
                snapshot = copy.deepcopy(list(self._storage[collection].values()))
            result = self._run_query(snapshot, options)
        except Exception as e:
            self._record_operation_failure(start_time, e)
            raise
        self._record_operation_success(start_time)
        return result

    async def count(self, collection: str, filters: Optional[List[QueryFilter]] = None) -> int:
        """Count records matching filters"""
        with self._lock:
            snapshot = list(self._storage[collection].values())
        return len(self._apply_filters(snapshot, filters or []))

    async def get_metrics(self) -> Dict[str, Any]:
        """Get backend metrics including per-collection sizes"""
        metrics = await super().get_metrics()
        with self._lock:
            metrics["collections"] = {name: len(records) for name, records in self._storage.items()}
        return metrics


# Export main components
__all__ = ["MemoryBackend"]
