"""Shared fixtures: throwaway stores and the wired app."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from showcase.api import app, configure
from showcase.datasources import Datasources, open_sql
from showcase.documents import DocumentStore
from showcase.migrations import create_customers_table, create_user_table
from showcase.migrations.base import Migration, build_registry
from showcase.migrations.runner import apply_migrations


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "showcase.db")


@pytest_asyncio.fixture
async def sql(db_path):
    conn = await open_sql(db_path)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def documents(tmp_path):
    store = DocumentStore(str(tmp_path / "documents.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def datasources(sql, documents):
    return Datasources(sql=sql, documents=documents)


class MigrationRecorder:
    """Builds migrations whose up actions record the order they ran in."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    def ok(self, version: int, sql: str | None = None) -> Migration:
        async def up(ds):
            self.calls.append(version)
            if sql:
                await ds.sql.execute(sql)
        return Migration(version, up, f"ok_{version}")

    def failing(self, version: int, sql: str | None = None) -> Migration:
        async def up(ds):
            self.calls.append(version)
            if sql:
                await ds.sql.execute(sql)
            raise RuntimeError(f"boom in {version}")
        return Migration(version, up, f"failing_{version}")


@pytest.fixture
def recorder():
    return MigrationRecorder()


# ── HTTP ────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def migrated(datasources):
    """Datasources with the relational tables the endpoints use."""
    registry = build_registry([
        Migration(20240226153000, create_user_table.up),
        Migration(20240301100000, create_customers_table.up),
    ])
    await apply_migrations(registry, datasources)
    return datasources


@pytest_asyncio.fixture
async def client(migrated):
    configure(datasources=migrated)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    configure()
