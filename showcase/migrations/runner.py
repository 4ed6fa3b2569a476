"""Migration runner — brings the stores up to the registered versions.

Pending means registered but not recorded as applied in the ledger. A run
holds the ledger's lock table row, so concurrent instances apply each
version once. Each migration runs inside its own transaction on the
relational connection, and its ledger row is written in that same
transaction. Changes to non-transactional stores (Redis) cannot be rolled
back, so the ledger is only written once the up action has returned.
"""

from __future__ import annotations

import logging
import os
import socket
from typing import Mapping

from showcase.config import settings
from showcase.datasources import Datasources
from showcase.exceptions import MigrationError
from showcase.migrations.base import Migration, MigrationStatus
from showcase.migrations.ledger import MigrationLedger
from showcase.types import new_id

_logger = logging.getLogger(__name__)


def _lock_owner() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{new_id()}"


async def pending_migrations(
    registry: Mapping[int, Migration], datasources: Datasources,
) -> list[int]:
    """Registered versions not yet applied, ascending."""
    ledger = MigrationLedger(datasources.sql)
    await ledger.initialize(
        timeout=settings.migration_lock_timeout_seconds,
        poll_interval=settings.migration_lock_poll_seconds,
    )
    applied = await ledger.applied_versions()
    return sorted(set(registry) - applied)


async def apply_migrations(
    registry: Mapping[int, Migration],
    datasources: Datasources,
    *,
    lock_timeout: float | None = None,
    poll_interval: float | None = None,
    stale_after: float | None = None,
) -> list[int]:
    """Apply all pending migrations in ascending order.

    Returns the versions applied by this call. Stops at the first failure
    and raises MigrationError naming that version; versions applied before
    it stay applied. While another instance holds the lock this waits up
    to `lock_timeout` seconds, then raises MigrationLockError.
    """
    if not registry:
        return []

    await datasources.ping()

    if lock_timeout is None:
        lock_timeout = settings.migration_lock_timeout_seconds
    if poll_interval is None:
        poll_interval = settings.migration_lock_poll_seconds
    if stale_after is None:
        stale_after = settings.migration_lock_stale_seconds

    ledger = MigrationLedger(datasources.sql)
    await ledger.initialize(timeout=lock_timeout, poll_interval=poll_interval)

    applied: list[int] = []
    async with ledger.locked(
        _lock_owner(),
        timeout=lock_timeout,
        poll_interval=poll_interval,
        stale_after=stale_after,
    ):
        # Read under the lock: another instance may have just finished.
        done = await ledger.applied_versions()
        pending = sorted(set(registry) - done)
        if not pending:
            _logger.info("Migrations up to date (%d applied)", len(done))
            return applied

        _logger.info("Applying %d pending migration(s): %s", len(pending), pending)
        for version in pending:
            await _apply_one(ledger, registry[version], datasources)
            applied.append(version)

    return applied


async def _apply_one(
    ledger: MigrationLedger, migration: Migration, datasources: Datasources,
) -> None:
    db = datasources.sql
    _logger.info("Migration %s: %s", migration, MigrationStatus.APPLYING.value)

    # Take the write lock up front so the up action never races another writer.
    await db.execute("BEGIN IMMEDIATE")
    try:
        await migration.up(datasources)
        await ledger.record(migration.version, MigrationStatus.APPLIED)
        await db.commit()
    except Exception as e:
        await db.rollback()
        _logger.error("Migration %s: %s (%s)", migration, MigrationStatus.FAILED.value, e)
        try:
            await ledger.record(migration.version, MigrationStatus.FAILED)
            await db.commit()
        except Exception as ledger_err:
            _logger.warning("Could not mark migration %s as failed: %s", migration, ledger_err)
        raise MigrationError(migration.version, e) from e

    _logger.info("Migration %s: %s", migration, MigrationStatus.APPLIED.value)
