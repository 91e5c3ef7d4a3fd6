"""
Shared fixtures.

``backend`` is parametrized over the in-memory backend and the SQL backend
(SQLite through aiosqlite in a temporary directory), so every test that uses
it runs once per backend.
"""

import pytest_asyncio

from fieldbook.domains import RECORD_TABLES
from fieldbook.persistence import MemoryBackend, SQLBackend, SQLConnectionConfig

from .support.factories import sqlite_url


@pytest_asyncio.fixture
async def memory_backend():
    backend = MemoryBackend()
    await backend.initialize()
    yield backend
    await backend.shutdown()


@pytest_asyncio.fixture
async def sql_backend(tmp_path):
    backend = SQLBackend(SQLConnectionConfig(database_url=sqlite_url(tmp_path)), models=RECORD_TABLES)
    await backend.initialize()
    yield backend
    await backend.shutdown()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def backend(request, tmp_path):
    if request.param == "memory":
        backend = MemoryBackend()
    else:
        backend = SQLBackend(SQLConnectionConfig(database_url=sqlite_url(tmp_path)), models=RECORD_TABLES)
    await backend.initialize()
    yield backend
    await backend.shutdown()
