"""
Persistence Backend Interface

💾 Standard Data Access Contract:
This module defines the interface that every storage backend implements.
Repositories depend on nothing else, so the storage engine can be swapped
(memory for tests, SQL for deployments) without touching domain code.

Records are plain dictionaries keyed by column name and grouped into named
collections, one collection per entity type.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.query import (
    KeysetPosition, QueryFilter, QueryOperator, QueryOptions, SortCriteria,
)
from ..core.sort import SortDirection

Record = Dict[str, Any]


class StorageBackend(ABC):
    """
    Abstract storage backend for record persistence.

    Implementations must be safe to call concurrently from multiple tasks.
    Writes to the same key are last-write-wins.
    """

    @abstractmethod
    async def initialize(self):
        """Prepare the backend for use (connect, create schema)"""
        pass

    @abstractmethod
    async def shutdown(self):
        """Release every resource held by the backend"""
        pass

    @abstractmethod
    async def save(self, collection: str, key: str, record: Record) -> None:
        """
        Insert or replace a record.

        Args:
            collection: Collection (table) name
            key: Record key
            record: Column values, including the key column
        """
        pass

    @abstractmethod
    async def insert(self, collection: str, key: str, record: Record) -> None:
        """
        Insert a record that must not exist yet.

        Args:
            collection: Collection (table) name
            key: Record key
            record: Column values, including the key column

        Raises:
            Conflict: if a record with ``key`` already exists
        """
        pass

    @abstractmethod
    async def replace(self, collection: str, key: str, record: Record) -> bool:
        """
        Overwrite a record only if it already exists.

        The existence check and the write are a single atomic step, so a
        concurrent delete never lets a replace recreate the record.

        Args:
            collection: Collection (table) name
            key: Record key
            record: Column values, including the key column

        Returns:
            True if replaced, False if no record has ``key``
        """
        pass

    @abstractmethod
    async def load(self, collection: str, key: str) -> Optional[Record]:
        """
        Load a record by key.

        Args:
            collection: Collection (table) name
            key: Record key

        Returns:
            The record or None if not found
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """
        Delete a record by key.

        Args:
            collection: Collection (table) name
            key: Record key

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def exists(self, collection: str, key: str) -> bool:
        """
        Check if a record exists.

        Args:
            collection: Collection (table) name
            key: Record key

        Returns:
            True if exists, False otherwise
        """
        pass

    @abstractmethod
    async def query(self, collection: str, options: QueryOptions) -> List[Record]:
        """
        Query records with filtering, ordering and pagination.

        Filters are applied first, then the full ordering from
        ``options.ordering()``, then the keyset position, then offset/limit.

        Args:
            collection: Collection (table) name
            options: Query options

        Returns:
            Matching records in order
        """
        pass

    @abstractmethod
    async def count(self, collection: str, filters: Optional[List[QueryFilter]] = None) -> int:
        """
        Count records matching filters.

        Args:
            collection: Collection (table) name
            filters: Optional list of filters

        Returns:
            Number of matching records
        """
        pass

    @abstractmethod
    async def get_metrics(self) -> Dict[str, Any]:
        """
        Get backend performance metrics.

        Returns:
            Dictionary of metrics
        """
        pass


# Export main components
__all__ = [
    "StorageBackend", "Record",
    "QueryOperator", "QueryFilter", "QueryOptions", "SortCriteria", "KeysetPosition",
    "SortDirection",
]
