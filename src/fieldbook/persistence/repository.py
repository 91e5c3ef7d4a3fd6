"""
Repository Contract

📚 Criteria-Based Entity Repositories:
A Repository persists, finds, lists and deletes one entity type on top of a
StorageBackend. Domain repositories only declare their types, their record
table and the entity <-> record mapping; everything else lives here:

- criteria translation into backend QueryOptions
- lazy, restartable result sequences
- opaque keyset cursors
- timeouts and wrapping of backend failures into PersistenceError
- validation of the schema mapping at construction
"""

import asyncio
import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from typing import (
    Any, AsyncIterator, Awaitable, Callable, ClassVar, Dict, Generic, List,
    Optional, Tuple, Type, TypeVar,
)

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python
from sqlmodel import SQLModel

from ..core.criteria import Criteria
from ..core.errors import (
    Conflict, FieldbookError, InvalidCriteria, InvalidIdentifier, NotFound,
    PersistenceError, RepositoryConfigurationError,
)
from ..core.identifier import Identifier
from ..core.query import KeysetPosition, QueryFilter, QueryOptions, SortCriteria
from ..core.timestamps import normalize
from .interface import Record, StorageBackend

logger = logging.getLogger(__name__)

EntityType = TypeVar("EntityType", bound=BaseModel)
IdentifierType = TypeVar("IdentifierType", bound=Identifier)
CriteriaType = TypeVar("CriteriaType", bound=Criteria)

DEFAULT_TIMEOUT = 5.0


class EntitySequence(Generic[EntityType]):
    """
    Lazy, finite, restartable sequence of entities.

    Nothing is fetched until the sequence is iterated. Every ``async for``
    (and every ``to_list()``) re-issues the query, so a sequence can be
    walked more than once and reflects the store at iteration time.
    """

    def __init__(self, fetch: Callable[[], Awaitable[List[EntityType]]], criteria: Optional[Criteria] = None):
        self._fetch = fetch
        self.criteria = criteria

    def __aiter__(self) -> AsyncIterator[EntityType]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[EntityType]:
        for entity in await self._fetch():
            yield entity

    async def to_list(self) -> List[EntityType]:
        return list(await self._fetch())

    async def first(self) -> Optional[EntityType]:
        """Get first entity or None"""
        entities = await self._fetch()
        return entities[0] if entities else None


class CursorCodec:
    """
    Encodes keyset positions as opaque URL-safe tokens.

    A token carries the ordering column and direction it was issued for, the
    column value of the last entity of the page and that entity's key.
    """

    @staticmethod
    def encode(sort: Optional[SortCriteria], value: Any, key: str) -> str:
        payload = {
            "c": sort.field if sort else None,
            "d": sort.direction.value if sort else None,
            "v": to_jsonable_python(value),
            "k": key,
        }
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    @staticmethod
    def decode(token: str) -> Dict[str, Any]:
        """
        Raises:
            ValueError: if the token is not a well-formed cursor
        """
        padded = token + "=" * (-len(token) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        except (binascii.Error, UnicodeError, json.JSONDecodeError) as e:
            raise ValueError("cursor is not decodable") from e
        if not isinstance(payload, dict) or not {"c", "d", "v", "k"} <= payload.keys():
            raise ValueError("cursor is missing fields")
        if not isinstance(payload["k"], str):
            raise ValueError("cursor key must be a string")
        return payload


class Repository(ABC, Generic[EntityType, IdentifierType, CriteriaType]):
    """
    Base repository for one entity type.

    Subclasses set the class attributes and implement ``to_record`` and
    ``from_record``. Construction fails with RepositoryConfigurationError
    when a sort column or filterable field is missing from the record table.

    Args:
        backend: Storage backend holding the records
        timeout: Seconds each backend call may take; None disables the bound
    """

    entity_type: ClassVar[Type[BaseModel]]
    identifier_type: ClassVar[Type[Identifier]]
    criteria_type: ClassVar[Type[Criteria]]
    record_table: ClassVar[Type[SQLModel]]
    filterable_fields: ClassVar[Tuple[str, ...]] = ()
    key_field: ClassVar[str] = "identifier"

    def __init__(self, backend: StorageBackend, timeout: Optional[float] = DEFAULT_TIMEOUT):
        self.backend = backend
        self.timeout = timeout
        self.collection = self.record_table.__tablename__
        self._validate_mapping()

    @property
    def entity_name(self) -> str:
        return self.entity_type.__name__

    # Mapping

    @abstractmethod
    def to_record(self, entity: EntityType) -> Record:
        """Map an entity to its record columns"""

    @abstractmethod
    def from_record(self, record: Record) -> EntityType:
        """Rebuild an entity from its record columns"""

    def _validate_mapping(self):
        columns = set(self.record_table.__table__.columns.keys())
        problems = []

        if self.key_field not in columns:
            problems.append(f"key field '{self.key_field}' is not a column")

        sort_type = self.criteria_type.sort_type
        if sort_type is None:
            problems.append(f"{self.criteria_type.__name__} declares no sort type")
        else:
            for member in sort_type:
                if member.column not in columns:
                    problems.append(f"sort {member.name} uses unknown column '{member.column}'")

        for name in self.filterable_fields:
            if name not in columns:
                problems.append(f"filter field '{name}' is not a column")

        if problems:
            raise RepositoryConfigurationError(type(self).__name__, problems)

    # Backend calls

    async def _call(self, operation: str, call: Awaitable[Any], identifier: Optional[str] = None) -> Any:
        """Run one backend call under the timeout, wrapping failures"""
        try:
            if self.timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{operation} {self.entity_name} {identifier or ''} timed out after {self.timeout}s")
            raise PersistenceError(
                self.entity_name, operation, f"timed out after {self.timeout}s", identifier
            ) from e
        except FieldbookError:
            raise
        except Exception as e:
            logger.error(f"{operation} {self.entity_name} {identifier or ''} failed: {type(e).__name__}")
            raise PersistenceError(
                self.entity_name, operation, f"backend error ({type(e).__name__})", identifier
            ) from e

    def _check_entity(self, entity: Any):
        if not isinstance(entity, self.entity_type):
            raise TypeError(f"{type(self).__name__} stores {self.entity_name}, got {type(entity).__name__}")

    def _key_of(self, entity: EntityType) -> str:
        return str(getattr(entity, self.key_field))

    def _record_of(self, entity: EntityType) -> Record:
        return {name: normalize(value) for name, value in self.to_record(entity).items()}

    # Operations

    async def persist(self, entity: EntityType) -> None:
        """Insert or replace ``entity``; concurrent writes are last-write-wins"""
        self._check_entity(entity)
        key = self._key_of(entity)
        logger.debug(f"persist {self.entity_name} {key}")
        await self._call("persist", self.backend.save(self.collection, key, self._record_of(entity)), key)

    async def add(self, entity: EntityType) -> None:
        """
        Insert ``entity``.

        Raises:
            Conflict: if an entity with the same identifier exists
        """
        self._check_entity(entity)
        key = self._key_of(entity)
        logger.debug(f"add {self.entity_name} {key}")
        try:
            await self._call("add", self.backend.insert(self.collection, key, self._record_of(entity)), key)
        except Conflict as e:
            logger.debug(f"add {self.entity_name} {key} conflicts with an existing record")
            raise Conflict(self.entity_name, key, "add") from e

    async def update(self, entity: EntityType) -> None:
        """
        Replace an existing ``entity``.

        Raises:
            NotFound: if no entity with the same identifier exists
        """
        self._check_entity(entity)
        key = self._key_of(entity)
        logger.debug(f"update {self.entity_name} {key}")
        replaced = await self._call(
            "update", self.backend.replace(self.collection, key, self._record_of(entity)), key
        )
        if not replaced:
            logger.debug(f"update {self.entity_name} {key}: not found")
            raise NotFound(self.entity_name, key, "update")

    async def find(self, identifier: Any) -> EntityType:
        """
        Load the entity with ``identifier``.

        Raises:
            InvalidIdentifier: if ``identifier`` is malformed
            NotFound: if no entity has that identifier
        """
        key = str(self.identifier_type.parse(identifier))
        logger.debug(f"find {self.entity_name} {key}")
        record = await self._call("find", self.backend.load(self.collection, key), key)
        if record is None:
            logger.debug(f"find {self.entity_name} {key}: not found")
            raise NotFound(self.entity_name, key, "find")
        return self.from_record(record)

    async def exists(self, identifier: Any) -> bool:
        key = str(self.identifier_type.parse(identifier))
        return await self._call("exists", self.backend.exists(self.collection, key), key)

    async def delete(self, identifier: Any) -> None:
        """
        Remove the entity with ``identifier``.

        Raises:
            NotFound: if no entity has that identifier
        """
        key = str(self.identifier_type.parse(identifier))
        logger.debug(f"delete {self.entity_name} {key}")
        removed = await self._call("delete", self.backend.delete(self.collection, key), key)
        if not removed:
            logger.debug(f"delete {self.entity_name} {key}: not found")
            raise NotFound(self.entity_name, key, "delete")

    def list(self, criteria: Optional[CriteriaType] = None) -> EntitySequence[EntityType]:
        """
        Entities matching ``criteria``, filtered, then ordered, then paginated.

        Without a sort the order is identifier ascending; with one, the
        identifier breaks ties. Criteria and cursors are validated here,
        before the sequence is returned; the backend is only queried when the
        sequence is iterated.

        Raises:
            InvalidCriteria: if the criteria or its cursor is invalid
        """
        criteria = self._criteria_or_default(criteria)
        options = self._build_options(criteria)

        async def fetch() -> List[EntityType]:
            logger.debug(f"list {self.entity_name} {criteria!r}")
            records = await self._call("list", self.backend.query(self.collection, options))
            return [self.from_record(record) for record in records]

        return EntitySequence(fetch, criteria)

    async def count(self, criteria: Optional[CriteriaType] = None) -> int:
        """Number of entities matching the criteria filters, ignoring pagination"""
        criteria = self._criteria_or_default(criteria)
        filters = self._normalized_filters(criteria)
        return await self._call("count", self.backend.count(self.collection, filters))

    def cursor_after(self, entity: EntityType, criteria: Optional[CriteriaType] = None) -> str:
        """Opaque token for the page following ``entity`` under the criteria ordering"""
        self._check_entity(entity)
        criteria = self._criteria_or_default(criteria)
        sort = self._sort_of(criteria)
        record = self._record_of(entity)
        value = record.get(sort.field) if sort else None
        return CursorCodec.encode(sort, value, self._key_of(entity))

    # Criteria translation

    def _criteria_or_default(self, criteria: Optional[CriteriaType]) -> CriteriaType:
        if criteria is None:
            return self.criteria_type()
        if not isinstance(criteria, self.criteria_type):
            raise InvalidCriteria(
                self.criteria_type.__name__, "criteria",
                f"expected {self.criteria_type.__name__}, got {type(criteria).__name__}",
            )
        return criteria

    @staticmethod
    def _sort_of(criteria: Criteria) -> Optional[SortCriteria]:
        if criteria.sort is None:
            return None
        return SortCriteria(criteria.sort.column, criteria.sort.direction)

    @staticmethod
    def _normalized_filters(criteria: Criteria) -> List[QueryFilter]:
        return [
            QueryFilter(condition.field, condition.operator, normalize(condition.value))
            for condition in criteria.filters()
        ]

    def _build_options(self, criteria: Criteria) -> QueryOptions:
        sort = self._sort_of(criteria)
        options = QueryOptions(
            filters=self._normalized_filters(criteria),
            sort_by=[sort] if sort else [],
            key_field=self.key_field,
            limit=criteria.limit,
            offset=criteria.offset or 0,
        )
        if criteria.cursor is not None:
            options.after = self._decode_cursor(criteria, sort)
        return options

    def _decode_cursor(self, criteria: Criteria, sort: Optional[SortCriteria]) -> KeysetPosition:
        owner = type(criteria).__name__
        try:
            payload = CursorCodec.decode(criteria.cursor)
        except ValueError as e:
            raise InvalidCriteria(owner, "cursor", str(e)) from e

        expected = (sort.field, sort.direction.value) if sort else (None, None)
        if (payload["c"], payload["d"]) != expected:
            raise InvalidCriteria(owner, "cursor", "cursor was issued for a different ordering")

        try:
            key = str(self.identifier_type.parse(payload["k"]))
        except InvalidIdentifier as e:
            raise InvalidCriteria(owner, "cursor", "cursor key is not a valid identifier") from e

        value = None
        if sort is not None:
            annotation = self.record_table.model_fields[sort.field].annotation
            try:
                value = normalize(TypeAdapter(annotation).validate_python(payload["v"]))
            except PydanticValidationError as e:
                raise InvalidCriteria(owner, "cursor", "cursor value does not match the ordering column") from e

        return KeysetPosition(sort=sort, value=value, key=key)


# Export main components
__all__ = [
    "Repository", "EntitySequence", "CursorCodec", "DEFAULT_TIMEOUT",
    "EntityType", "IdentifierType", "CriteriaType",
]
