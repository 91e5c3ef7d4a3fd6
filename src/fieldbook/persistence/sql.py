"""
SQL Backend - SQLModel Persistence Backend

🗃️ SQL Database Backend:
This module provides a storage backend for SQL databases built on SQLModel
tables and an async SQLAlchemy engine. Each collection maps to one SQLModel
table class; records travel as plain column dictionaries.

Key Features:
- One session per operation, committed or rolled back before returning
- Atomic upserts through the dialect INSERT .. ON CONFLICT (last write wins)
- Query translation from backend filters, ordering and keyset positions to SQL
- Schema creation on initialize, engine disposal on shutdown
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Type

from sqlalchemy import and_, asc, delete, desc, func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from ..core.errors import Conflict
from ..core.query import KeysetPosition, QueryFilter, QueryOperator, QueryOptions
from ..core.sort import SortDirection
from .base import BaseBackend
from .interface import Record

logger = logging.getLogger(__name__)


@dataclass
class SQLConnectionConfig:
    """SQL database connection configuration"""
    database_url: str = "sqlite+aiosqlite:///fieldbook.db"
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None
    connect_args: Dict[str, Any] = field(default_factory=dict)

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for create_async_engine; pool sizing only when set"""
        options: Dict[str, Any] = {"echo": self.echo, "connect_args": self.connect_args}
        if self.pool_size is not None:
            options["pool_size"] = self.pool_size
        if self.max_overflow is not None:
            options["max_overflow"] = self.max_overflow
        return options


class SQLBackend(BaseBackend):
    """
    SQL backend implementation using SQLModel tables.

    Args:
        config: Connection configuration
        models: SQLModel table classes served by this backend; each is
            addressed by its ``__tablename__``
    """

    def __init__(self, config: SQLConnectionConfig, models: Iterable[Type[SQLModel]] = ()):
        super().__init__(database_url=config.database_url)
        self.connection_config = config
        self._models: Dict[str, Type[SQLModel]] = {}
        for model in models:
            self.register_model(model)

        self.engine = create_async_engine(config.database_url, **config.engine_options())
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_options(cls, models: Iterable[Type[SQLModel]] = (), **options: Any) -> "SQLBackend":
        """Build from flat options as stored in a BackendConfig"""
        return cls(SQLConnectionConfig(**options), models=models)

    def register_model(self, model: Type[SQLModel]):
        """Serve ``model`` under its table name"""
        self._models[model.__tablename__] = model

    @property
    def collections(self) -> List[str]:
        return sorted(self._models)

    def _model_for(self, collection: str) -> Type[SQLModel]:
        try:
            return self._models[collection]
        except KeyError:
            raise LookupError(f"No table registered for collection '{collection}'") from None

    @staticmethod
    def _key_column(model: Type[SQLModel]):
        return list(model.__table__.primary_key.columns)[0]

    @staticmethod
    def _to_record(instance: SQLModel) -> Record:
        return {column.name: getattr(instance, column.name) for column in instance.__table__.columns}

    async def _do_initialize(self):
        """Create tables for every registered model"""
        tables = [model.__table__ for model in self._models.values()]
        async with self.engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all, tables=tables)
        logger.info(f"SQLBackend ready with tables: {', '.join(self.collections)}")

    async def _do_shutdown(self):
        await self.engine.dispose()

    def _upsert_statement(self, model: Type[SQLModel], values: Record):
        """Single-statement INSERT .. ON CONFLICT DO UPDATE, or None if the dialect has none"""
        dialects = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}
        dialect_insert = dialects.get(self.engine.dialect.name)
        if dialect_insert is None:
            return None

        key_column = self._key_column(model)
        stmt = dialect_insert(model.__table__).values(**values)
        updates = {name: stmt.excluded[name] for name in values if name != key_column.name}
        if not updates:
            return stmt.on_conflict_do_nothing(index_elements=[key_column.name])
        return stmt.on_conflict_do_update(index_elements=[key_column.name], set_=updates)

    # Core operations
    async def save(self, collection: str, key: str, record: Record) -> None:
        """Insert or replace a record"""
        model = self._model_for(collection)
        values = self._to_record(model(**record))
        start_time = self._record_operation_start()

        stmt = self._upsert_statement(model, values)
        try:
            if stmt is not None:
                async with self.session_factory() as session:
                    await session.execute(stmt)
                    await session.commit()
            else:
                await self._merge(model, values)
        except Exception as e:
            self._record_operation_failure(start_time, e)
            raise
        self._record_operation_success(start_time)

    async def _merge(self, model: Type[SQLModel], values: Record):
        """Upsert for dialects without ON CONFLICT; a lost insert race is retried as an update"""
        for attempt in (1, 2):
            async with self.session_factory() as session:
                try:
                    await session.merge(model(**values))
                    await session.commit()
                    return
                except IntegrityError:
                    await session.rollback()
                    if attempt == 2:
                        raise
                    logger.debug(f"Concurrent insert on {model.__tablename__}, retrying as update")

    async def replace(self, collection: str, key: str, record: Record) -> bool:
        """Overwrite an existing record in one UPDATE statement"""
        model = self._model_for(collection)
        key_column = self._key_column(model)
        values = self._to_record(model(**record))
        values.pop(key_column.name, None)
        start_time = self._record_operation_start()

        async with self.session_factory() as session:
            try:
                stmt = update(model).where(key_column == key).values(**values)
                result = await session.execute(stmt)
                await session.commit()
            except Exception as e:
                await session.rollback()
                self._record_operation_failure(start_time, e)
                raise
        self._record_operation_success(start_time)
        return result.rowcount > 0

    async def insert(self, collection: str, key: str, record: Record) -> None:
        """Insert a record, raising Conflict if the key is taken"""
        model = self._model_for(collection)
        start_time = self._record_operation_start()

        async with self.session_factory() as session:
            try:
                if await session.get(model, key) is not None:
                    raise Conflict(collection, key)
                session.add(model(**record))
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                self._record_operation_failure(start_time, e)
                raise Conflict(collection, key) from e
            except Exception as e:
                await session.rollback()
                self._record_operation_failure(start_time, e)
                raise
        self._record_operation_success(start_time)

    async def load(self, collection: str, key: str) -> Optional[Record]:
        """Load a record by key"""
        model = self._model_for(collection)
        start_time = self._record_operation_start()

        async with self.session_factory() as session:
            try:
                instance = await session.get(model, key)
            except Exception as e:
                self._record_operation_failure(start_time, e)
                raise
        self._record_operation_success(start_time)
        return self._to_record(instance) if instance is not None else None

    async def delete(self, collection: str, key: str) -> bool:
        """Delete a record by key"""
        model = self._model_for(collection)
        start_time = self._record_operation_start()

        async with self.session_factory() as session:
            try:
                stmt = delete(model).where(self._key_column(model) == key)
                result = await session.execute(stmt)
                await session.commit()
            except Exception as e:
                await session.rollback()
                self._record_operation_failure(start_time, e)
                raise
        self._record_operation_success(start_time)
        return result.rowcount > 0

    async def exists(self, collection: str, key: str) -> bool:
        """Check if a record exists"""
        model = self._model_for(collection)
        key_column = self._key_column(model)

        async with self.session_factory() as session:
            result = await session.execute(select(key_column).where(key_column == key))
            return result.scalar_one_or_none() is not None

    def _build_condition(self, model: Type[SQLModel], condition: QueryFilter):
        """Translate one backend filter into a SQLAlchemy expression"""
        column = model.__table__.columns[condition.field]
        op = condition.operator
        value = condition.value

        if op == QueryOperator.EQUALS:
            return column == value
        elif op == QueryOperator.NOT_EQUALS:
            return column != value
        elif op == QueryOperator.GREATER_THAN:
            return column > value
        elif op == QueryOperator.GREATER_THAN_OR_EQUAL:
            return column >= value
        elif op == QueryOperator.LESS_THAN:
            return column < value
        elif op == QueryOperator.LESS_THAN_OR_EQUAL:
            return column <= value
        elif op == QueryOperator.IN:
            return column.in_(value)
        elif op == QueryOperator.NOT_IN:
            return ~column.in_(value)
        elif op == QueryOperator.CONTAINS:
            return column.contains(value)
        elif op == QueryOperator.IS_NULL:
            return column.is_(None)
        elif op == QueryOperator.IS_NOT_NULL:
            return column.is_not(None)
        raise ValueError(f"Unsupported operator: {op}")

    def _build_where_clause(self, model: Type[SQLModel], filters: List[QueryFilter]):
        """Build SQLAlchemy where clause from backend filters"""
        conditions = [self._build_condition(model, condition) for condition in filters]
        if not conditions:
            return None
        return and_(*conditions) if len(conditions) > 1 else conditions[0]

    def _build_keyset_clause(self, model: Type[SQLModel], position: KeysetPosition, key_field: str):
        """Rows strictly after ``position``, with the key as ascending tiebreaker"""
        key_column = model.__table__.columns[key_field]
        if position.sort is None:
            return key_column > position.key

        column = model.__table__.columns[position.sort.field]
        if position.sort.direction == SortDirection.DESC:
            beyond = column < position.value
        else:
            beyond = column > position.value
        return or_(beyond, and_(column == position.value, key_column > position.key))

    def _build_order_clause(self, model: Type[SQLModel], options: QueryOptions):
        """Build SQLAlchemy order clause from the full ordering"""
        order_clauses = []
        for sort_item in options.ordering():
            column = model.__table__.columns[sort_item.field]
            if sort_item.direction == SortDirection.DESC:
                order_clauses.append(desc(column))
            else:
                order_clauses.append(asc(column))
        return order_clauses

    async def query(self, collection: str, options: QueryOptions) -> List[Record]:
        """Query records with filtering, ordering and pagination"""
        model = self._model_for(collection)
        start_time = self._record_operation_start()

        stmt = select(model)
        where_clause = self._build_where_clause(model, options.filters)
        if where_clause is not None:
            stmt = stmt.where(where_clause)
        if options.after is not None:
            stmt = stmt.where(self._build_keyset_clause(model, options.after, options.key_field))
        stmt = stmt.order_by(*self._build_order_clause(model, options))
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)

        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                records = [self._to_record(instance) for instance in result.scalars().all()]
            except Exception as e:
                self._record_operation_failure(start_time, e)
                raise
        self._record_operation_success(start_time)
        return records

    async def count(self, collection: str, filters: Optional[List[QueryFilter]] = None) -> int:
        """Count records matching filters"""
        model = self._model_for(collection)

        stmt = select(func.count()).select_from(model)
        where_clause = self._build_where_clause(model, filters or [])
        if where_clause is not None:
            stmt = stmt.where(where_clause)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()


# Export main components
__all__ = ["SQLBackend", "SQLConnectionConfig"]
