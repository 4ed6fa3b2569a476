"""Datasources — the live store handles shared by migrations and handlers.

One relational connection (SQLite, autocommit mode so callers own their
transactions), the document store, and an optional Redis cache.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

import aiosqlite
import redis.asyncio as redis
from redis.exceptions import RedisError

from showcase.config import ShowcaseSettings
from showcase.documents import DocumentStore
from showcase.exceptions import DatasourceUnavailableError

_logger = logging.getLogger(__name__)


@dataclass
class Datasources:
    sql: aiosqlite.Connection
    documents: DocumentStore | None = None
    redis: redis.Redis | None = None

    async def ping(self) -> None:
        """Check every configured store. Raises DatasourceUnavailableError."""
        try:
            await _select_one(self.sql)
        except (sqlite3.Error, ValueError) as e:
            raise DatasourceUnavailableError(f"SQL store unreachable: {e}") from e

        if self.documents is not None:
            try:
                await self.documents.ping()
            except (sqlite3.Error, ValueError, RuntimeError) as e:
                raise DatasourceUnavailableError(f"Document store unreachable: {e}") from e

        if self.redis is not None:
            try:
                await self.redis.ping()
            except (RedisError, OSError) as e:
                raise DatasourceUnavailableError(f"Redis unreachable: {e}") from e

    async def health(self) -> dict[str, str]:
        """Per-store UP/DOWN map, never raises."""
        status: dict[str, str] = {}
        checks = {"sql": self._ping_sql, "documents": self._ping_documents, "redis": self._ping_redis}
        for name, check in checks.items():
            try:
                configured = await check()
            except Exception as e:
                _logger.warning("Health check for %s failed: %s", name, e)
                status[name] = "DOWN"
                continue
            if configured:
                status[name] = "UP"
        return status

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
        if self.documents is not None:
            await self.documents.close()
        await self.sql.close()

    async def _ping_sql(self) -> bool:
        await _select_one(self.sql)
        return True

    async def _ping_documents(self) -> bool:
        if self.documents is None:
            return False
        await self.documents.ping()
        return True

    async def _ping_redis(self) -> bool:
        if self.redis is None:
            return False
        await self.redis.ping()
        return True


async def _select_one(conn: aiosqlite.Connection) -> None:
    async with conn.execute("SELECT 1") as cursor:
        await cursor.fetchone()


async def open_sql(path: str, timeout: float = 5.0) -> aiosqlite.Connection:
    """Open the relational store in autocommit mode with WAL journaling.

    Autocommit leaves BEGIN/COMMIT to callers; WAL lets readers proceed
    while another connection holds the write lock. `timeout` is SQLite's
    busy timeout for a single statement.
    """
    sql = await aiosqlite.connect(path, timeout=timeout, isolation_level=None)
    sql.row_factory = aiosqlite.Row
    # An unread cursor keeps the statement open and the file locked.
    async with sql.execute("PRAGMA journal_mode=WAL") as cursor:
        await cursor.fetchone()
    return sql


async def connect_datasources(config: ShowcaseSettings) -> Datasources:
    """Open every store named in the settings."""
    config.db_path.parent.mkdir(parents=True, exist_ok=True)
    config.documents_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        sql = await open_sql(str(config.db_path))
        documents = DocumentStore(str(config.documents_path))
        await documents.initialize()
    except sqlite3.Error as e:
        raise DatasourceUnavailableError(f"Cannot open SQLite store: {e}") from e

    cache = None
    if config.redis_url:
        cache = redis.Redis.from_url(
            config.redis_url,
            decode_responses=True,
            socket_connect_timeout=5.0,
            max_connections=10,
        )

    _logger.info(
        "Datasources ready: sql=%s documents=%s redis=%s",
        config.db_path, config.documents_path, config.redis_url or "disabled",
    )
    return Datasources(sql=sql, documents=documents, redis=cache)
