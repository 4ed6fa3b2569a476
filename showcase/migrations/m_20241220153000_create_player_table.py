"""Create `t_player` with an update_at trigger, ids starting at 100000."""

from __future__ import annotations

from showcase.datasources import Datasources

STATEMENTS = (
    """CREATE TABLE IF NOT EXISTS t_player (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        create_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
        update_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TRIGGER IF NOT EXISTS update_player
    AFTER UPDATE ON t_player
    FOR EACH ROW
    BEGIN
        UPDATE t_player SET update_at = CURRENT_TIMESTAMP WHERE id = OLD.id;
    END""",
    # sqlite_sequence only gets a row once something has been inserted.
    "INSERT INTO t_player (name) VALUES ('initial_record')",
    "UPDATE sqlite_sequence SET seq = 99999 WHERE name = 't_player'",
    "DELETE FROM t_player WHERE name = 'initial_record'",
)


async def up(ds: Datasources) -> None:
    for statement in STATEMENTS:
        await ds.sql.execute(statement)
