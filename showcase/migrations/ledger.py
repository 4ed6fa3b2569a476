"""Migration ledger — which versions have been applied, and the run lock.

Both tables live in the relational store the migrations target, so the
ledger row for a version commits in the same transaction as its changes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import aiosqlite
from pydantic import BaseModel

from showcase.exceptions import MigrationLockError
from showcase.migrations.base import MigrationStatus

_logger = logging.getLogger(__name__)

LOCK_NAME = "migrations"


class LedgerEntry(BaseModel):
    version: int
    applied_at: datetime
    status: MigrationStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MigrationLedger:
    """Durable record of migration outcomes backed by SQLite."""

    def __init__(
        self,
        db: aiosqlite.Connection,
        table: str = "schema_migrations",
        lock_table: str = "schema_migration_lock",
    ) -> None:
        self._db = db
        self._table = table
        self._lock_table = lock_table

    async def initialize(self, timeout: float = 300.0, poll_interval: float = 0.5) -> None:
        """Create the ledger and lock tables if needed.

        Another instance may hold the write lock for as long as one of its
        migrations runs, so a busy database is retried until `timeout`.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not await self.exists():
            try:
                await self._create_tables()
                return
            except aiosqlite.OperationalError as e:
                if "locked" not in str(e):
                    raise
                if self._db.in_transaction:
                    await self._db.rollback()
            if loop.time() >= deadline:
                raise MigrationLockError(
                    f"Timed out after {timeout}s waiting to create the migration ledger"
                )
            await asyncio.sleep(poll_interval)

    async def exists(self) -> bool:
        """Whether both the ledger and lock tables are present."""
        async with self._db.execute(
            "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name IN (?, ?)",
            (self._table, self._lock_table),
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] == 2

    async def _create_tables(self) -> None:
        await self._db.execute("BEGIN IMMEDIATE")
        await self._db.execute(f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL,
                status TEXT NOT NULL CHECK (status IN ('applied', 'failed'))
            )
        """)
        await self._db.execute(f"""
            CREATE TABLE IF NOT EXISTS {self._lock_table} (
                name TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                acquired_at TEXT NOT NULL
            )
        """)
        await self._db.commit()

    async def applied_versions(self) -> set[int]:
        cursor = await self._db.execute(
            f"SELECT version FROM {self._table} WHERE status = ?",
            (MigrationStatus.APPLIED.value,),
        )
        rows = await cursor.fetchall()
        return {row[0] for row in rows}

    async def entries(self) -> list[LedgerEntry]:
        """All ledger rows, ascending by version."""
        cursor = await self._db.execute(
            f"SELECT version, applied_at, status FROM {self._table} ORDER BY version"
        )
        rows = await cursor.fetchall()
        return [
            LedgerEntry(
                version=row[0],
                applied_at=datetime.fromisoformat(row[1]),
                status=MigrationStatus(row[2]),
            )
            for row in rows
        ]

    async def record(self, version: int, status: MigrationStatus) -> None:
        """Upsert the outcome for a version. Does not commit."""
        await self._db.execute(
            f"""INSERT INTO {self._table} (version, applied_at, status)
                VALUES (?, ?, ?)
                ON CONFLICT(version) DO UPDATE SET
                    applied_at = excluded.applied_at,
                    status = excluded.status""",
            (version, _now().isoformat(), status.value),
        )

    # ── Run lock ─────────────────────────────────────────────────

    async def acquire_lock(
        self,
        owner: str,
        timeout: float,
        poll_interval: float = 0.5,
        stale_after: float | None = None,
    ) -> None:
        """Claim the run lock, waiting up to `timeout` seconds.

        A holder older than `stale_after` seconds is assumed dead and evicted.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            try:
                await self._db.execute(
                    f"INSERT INTO {self._lock_table} (name, owner, acquired_at) VALUES (?, ?, ?)",
                    (LOCK_NAME, owner, _now().isoformat()),
                )
                await self._db.commit()
                _logger.debug("Migration lock acquired by %s", owner)
                return
            except aiosqlite.IntegrityError:
                await self._db.rollback()
            except aiosqlite.OperationalError as e:
                # The holder is mid-transaction; same as finding the row.
                if "locked" not in str(e):
                    raise
                await self._db.rollback()

            if stale_after is not None and await self._evict_stale(stale_after):
                continue

            if loop.time() >= deadline:
                holder = await self.lock_holder()
                raise MigrationLockError(
                    f"Timed out after {timeout}s waiting for migration lock held by {holder}"
                )
            await asyncio.sleep(poll_interval)

    async def release_lock(self, owner: str) -> None:
        await self._db.execute(
            f"DELETE FROM {self._lock_table} WHERE name = ? AND owner = ?",
            (LOCK_NAME, owner),
        )
        await self._db.commit()
        _logger.debug("Migration lock released by %s", owner)

    @asynccontextmanager
    async def locked(
        self,
        owner: str,
        timeout: float,
        poll_interval: float = 0.5,
        stale_after: float | None = None,
    ) -> AsyncIterator[None]:
        """Hold the run lock for the duration of the block."""
        await self.acquire_lock(owner, timeout, poll_interval, stale_after)
        try:
            yield
        finally:
            if self._db.in_transaction:
                await self._db.rollback()
            await self.release_lock(owner)

    async def lock_holder(self) -> str | None:
        async with self._db.execute(
            f"SELECT owner FROM {self._lock_table} WHERE name = ?", (LOCK_NAME,),
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def _evict_stale(self, stale_after: float) -> bool:
        cutoff = (_now() - timedelta(seconds=stale_after)).isoformat()
        try:
            cursor = await self._db.execute(
                f"DELETE FROM {self._lock_table} WHERE name = ? AND acquired_at < ?",
                (LOCK_NAME, cutoff),
            )
            await self._db.commit()
        except aiosqlite.OperationalError as e:
            if "locked" not in str(e):
                raise
            await self._db.rollback()
            return False
        if cursor.rowcount:
            _logger.warning("Evicted stale migration lock older than %ss", stale_after)
            return True
        return False

    def __repr__(self) -> str:
        return f"MigrationLedger(table={self._table!r})"
