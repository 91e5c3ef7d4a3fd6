"""
Base Backend - Common Backend Functionality

🏗️ Shared Backend Foundation:
This module provides the lifecycle, metrics and in-memory query helpers
shared by storage backend implementations, so every backend reports the
same metrics and evaluates filters, ordering and keyset positions the
same way.
"""

import logging
from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.query import KeysetPosition, QueryFilter, QueryOperator, QueryOptions
from ..core.sort import SortDirection
from .interface import Record, StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class BackendMetrics:
    """Metrics collected by backend implementations"""
    total_operations: int = 0
    successful_operations: int = 0
    failed_operations: int = 0
    average_response_time_ms: float = 0.0
    records_count: int = 0
    uptime_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary"""
        return {
            "total_operations": self.total_operations,
            "successful_operations": self.successful_operations,
            "failed_operations": self.failed_operations,
            "success_rate": self.successful_operations / max(self.total_operations, 1),
            "average_response_time_ms": self.average_response_time_ms,
            "records_count": self.records_count,
            "uptime_seconds": self.uptime_seconds,
        }


def _null_first(value: Any) -> tuple:
    """Sort key placing None before every other value"""
    return (value is not None, value)


class BaseBackend(StorageBackend, ABC):
    """
    Base backend implementation providing common functionality.

    This class provides:
    - Lifecycle management (idempotent initialize/shutdown)
    - Metrics collection
    - In-memory filtering, ordering, keyset and offset pagination
    """

    def __init__(self, **config):
        self.config = config
        self.metrics = BackendMetrics()
        self.start_time = datetime.now()
        self._is_initialized = False
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self):
        """Initialize the backend"""
        if self._is_initialized:
            return

        self._logger.info(f"Initializing {self.__class__.__name__}")
        await self._do_initialize()
        self._is_initialized = True
        self._logger.info(f"{self.__class__.__name__} initialized successfully")

    async def shutdown(self):
        """Shutdown the backend"""
        if not self._is_initialized:
            return

        self._logger.info(f"Shutting down {self.__class__.__name__}")
        await self._do_shutdown()
        self._is_initialized = False
        self._logger.info(f"{self.__class__.__name__} shutdown complete")

    async def _do_initialize(self):
        """Override in subclasses for specific initialization"""
        pass

    async def _do_shutdown(self):
        """Override in subclasses for specific shutdown"""
        pass

    # Metrics and monitoring
    async def get_metrics(self) -> Dict[str, Any]:
        """Get backend performance metrics"""
        self.metrics.uptime_seconds = (datetime.now() - self.start_time).total_seconds()
        return self.metrics.to_dict()

    def _record_operation_start(self) -> datetime:
        """Record the start of an operation"""
        return datetime.now()

    def _record_operation_success(self, start_time: datetime):
        """Record a successful operation"""
        duration = (datetime.now() - start_time).total_seconds() * 1000
        self.metrics.total_operations += 1
        self.metrics.successful_operations += 1

        total_time = self.metrics.average_response_time_ms * (self.metrics.successful_operations - 1)
        self.metrics.average_response_time_ms = (total_time + duration) / self.metrics.successful_operations

    def _record_operation_failure(self, start_time: datetime, error: Exception):
        """Record a failed operation"""
        self.metrics.total_operations += 1
        self.metrics.failed_operations += 1
        self._logger.error(f"Operation failed: {error}")

    # Query helpers
    def _apply_filters(self, records: List[Record], filters: List[QueryFilter]) -> List[Record]:
        """Apply filters to a list of records (for in-memory filtering)"""
        if not filters:
            return records
        return [record for record in records if self._record_matches_filters(record, filters)]

    def _record_matches_filters(self, record: Record, filters: List[QueryFilter]) -> bool:
        """Check if record matches all filters"""
        return all(self._record_matches_filter(record, condition) for condition in filters)

    def _record_matches_filter(self, record: Record, condition: QueryFilter) -> bool:
        """Check if record matches a single filter"""
        field_value = record.get(condition.field)
        op = condition.operator
        value = condition.value

        if op == QueryOperator.EQUALS:
            return field_value == value
        elif op == QueryOperator.NOT_EQUALS:
            return field_value != value
        elif op == QueryOperator.GREATER_THAN:
            return field_value is not None and field_value > value
        elif op == QueryOperator.GREATER_THAN_OR_EQUAL:
            return field_value is not None and field_value >= value
        elif op == QueryOperator.LESS_THAN:
            return field_value is not None and field_value < value
        elif op == QueryOperator.LESS_THAN_OR_EQUAL:
            return field_value is not None and field_value <= value
        elif op == QueryOperator.IN:
            return field_value in value
        elif op == QueryOperator.NOT_IN:
            return field_value not in value
        elif op == QueryOperator.CONTAINS:
            return isinstance(field_value, str) and isinstance(value, str) and value in field_value
        elif op == QueryOperator.IS_NULL:
            return field_value is None
        elif op == QueryOperator.IS_NOT_NULL:
            return field_value is not None
        raise ValueError(f"Unsupported operator: {op}")

    def _apply_sorting(self, records: List[Record], options: QueryOptions) -> List[Record]:
        """
        Apply the full ordering to a list of records.

        Sorts are stable, so sorting by each criterion from the last to the
        first yields a correct multi-column order with mixed directions.
        Nulls sort first ascending and last descending.
        """
        result = list(records)
        for criteria in reversed(options.ordering()):
            result.sort(
                key=lambda record: _null_first(record.get(criteria.field)),
                reverse=criteria.direction == SortDirection.DESC,
            )
        return result

    def _apply_keyset(self, records: List[Record], options: QueryOptions) -> List[Record]:
        """Keep only records strictly after the keyset position, if any"""
        if options.after is None:
            return records
        return [record for record in records if self._is_after(record, options.after, options.key_field)]

    @staticmethod
    def _is_after(record: Record, position: KeysetPosition, key_field: str) -> bool:
        key = record.get(key_field)
        if position.sort is None:
            return key > position.key

        current = _null_first(record.get(position.sort.field))
        anchor = _null_first(position.value)
        if current == anchor:
            return key > position.key
        if position.sort.direction == SortDirection.DESC:
            return current < anchor
        return current > anchor

    def _apply_pagination(self, records: List[Record], options: QueryOptions) -> List[Record]:
        """Apply offset/limit to a list of records"""
        start = options.offset or 0
        if options.limit is not None:
            return records[start:start + options.limit]
        return records[start:]

    def _run_query(self, records: List[Record], options: QueryOptions) -> List[Record]:
        """Filter, order, position and paginate a list of records"""
        matched = self._apply_filters(records, options.filters)
        ordered = self._apply_sorting(matched, options)
        positioned = self._apply_keyset(ordered, options)
        return self._apply_pagination(positioned, options)


# Export main components
__all__ = ["BaseBackend", "BackendMetrics"]
