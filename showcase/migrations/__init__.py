"""Versioned, forward-only migrations for the showcase datastores.

Versions follow the YYYYMMDDHHMMSS convention. Each migration module
defines an `async def up(ds: Datasources)`; `all_migrations()` is the one
place versions are assigned. There is no rollback: undo a change with a
new forward migration.
"""

from __future__ import annotations

from typing import Mapping

from showcase.migrations import (
    m_20240226153000_create_user_table as create_user_table,
    m_20240301100000_create_customers_table as create_customers_table,
    m_20241219153001_init_gift_counter as init_gift_counter,
    m_20241220153000_create_player_table as create_player_table,
)
from showcase.migrations.base import Migration, MigrationStatus, build_registry

__all__ = ["Migration", "MigrationStatus", "all_migrations", "build_registry"]


def all_migrations() -> Mapping[int, Migration]:
    return build_registry([
        Migration(20240226153000, create_user_table.up, "create_user_table"),
        Migration(20240301100000, create_customers_table.up, "create_customers_table"),
        Migration(20241219153001, init_gift_counter.up, "init_gift_counter"),
        Migration(20241220153000, create_player_table.up, "create_player_table"),
    ])
