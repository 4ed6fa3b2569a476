"""Document store — schemaless JSON documents grouped in collections.

Backed by its own SQLite file. Documents are serialized with orjson and
matched on exact top-level field equality.
"""

from __future__ import annotations

import asyncio
from typing import Any

import aiosqlite
import orjson

from showcase.types import new_id


class DocumentStore:
    """Collections of JSON documents keyed by a generated id."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = asyncio.Lock()
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open the backing file and create the documents table if needed."""
        self._db = await aiosqlite.connect(self._db_path)
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                collection TEXT NOT NULL,
                body TEXT NOT NULL
            )
        """)
        await self._db.execute(
            "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents (collection)"
        )
        await self._db.commit()

    async def ping(self) -> None:
        async with self._conn().execute("SELECT 1") as cursor:
            await cursor.fetchone()

    async def insert_one(self, collection: str, document: dict[str, Any]) -> str:
        """Store a document and return its id."""
        doc_id = new_id()
        async with self._lock:
            db = self._conn()
            await db.execute(
                "INSERT INTO documents (id, collection, body) VALUES (?, ?, ?)",
                (doc_id, collection, orjson.dumps(document).decode()),
            )
            await db.commit()
        return doc_id

    async def find(
        self, collection: str, query: dict[str, Any] | None = None, limit: int = 0,
    ) -> list[dict[str, Any]]:
        """Documents in insertion order whose fields equal every item of `query`."""
        query = query or {}
        matches: list[dict[str, Any]] = []
        cursor = await self._conn().execute(
            "SELECT id, body FROM documents WHERE collection = ? ORDER BY rowid",
            (collection,),
        )
        async for doc_id, body in cursor:
            doc = orjson.loads(body)
            if all(doc.get(k) == v for k, v in query.items()):
                matches.append({"_id": doc_id, **doc})
                if limit and len(matches) >= limit:
                    break
        await cursor.close()
        return matches

    async def find_one(
        self, collection: str, query: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        found = await self.find(collection, query, limit=1)
        return found[0] if found else None

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("DocumentStore.initialize() has not been called")
        return self._db

    def __repr__(self) -> str:
        return f"DocumentStore(path={self._db_path!r})"
