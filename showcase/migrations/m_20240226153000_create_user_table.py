"""Create the `user` table behind the /users REST resource."""

from __future__ import annotations

from showcase.datasources import Datasources

CREATE_USER_TABLE = """
CREATE TABLE IF NOT EXISTS user (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(200) NOT NULL,
    age INT NOT NULL
)
"""


async def up(ds: Datasources) -> None:
    await ds.sql.execute(CREATE_USER_TABLE)
