"""Create the `customers` table written by POST /customer/{name}."""

from __future__ import annotations

from showcase.datasources import Datasources


async def up(ds: Datasources) -> None:
    await ds.sql.execute(
        "CREATE TABLE IF NOT EXISTS customers ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)"
    )
