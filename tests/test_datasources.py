"""Tests for datasource wiring and health checks."""

import pytest
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError

from showcase.config import ShowcaseSettings
from showcase.datasources import connect_datasources, open_sql
from showcase.exceptions import DatasourceUnavailableError


@pytest.mark.asyncio
async def test_ping_all_up(datasources):
    datasources.redis = AsyncMock()
    await datasources.ping()
    datasources.redis.ping.assert_awaited_once()


@pytest.mark.asyncio
async def test_ping_redis_down(datasources):
    datasources.redis = AsyncMock()
    datasources.redis.ping.side_effect = RedisConnectionError("refused")

    with pytest.raises(DatasourceUnavailableError, match="Redis"):
        await datasources.ping()


@pytest.mark.asyncio
async def test_health_reports_each_store(datasources):
    datasources.redis = AsyncMock()
    datasources.redis.ping.side_effect = RedisConnectionError("refused")

    assert await datasources.health() == {"sql": "UP", "documents": "UP", "redis": "DOWN"}


@pytest.mark.asyncio
async def test_health_skips_unconfigured(datasources):
    assert await datasources.health() == {"sql": "UP", "documents": "UP"}


@pytest.mark.asyncio
async def test_connect_datasources_creates_files(tmp_path):
    config = ShowcaseSettings(
        db_path=tmp_path / "nested" / "app.db",
        documents_path=tmp_path / "nested" / "docs.db",
        redis_url="",
    )

    ds = await connect_datasources(config)
    try:
        assert ds.redis is None
        await ds.ping()
        cursor = await ds.sql.execute("PRAGMA journal_mode")
        assert (await cursor.fetchone())[0] == "wal"
    finally:
        await ds.close()

    assert (tmp_path / "nested" / "app.db").exists()


@pytest.mark.asyncio
async def test_second_connection_opens_while_first_is_idle(db_path):
    first = await open_sql(db_path, timeout=0.1)
    try:
        second = await open_sql(db_path, timeout=0.1)
        try:
            await second.execute("CREATE TABLE t (id INTEGER)")
            async with first.execute("PRAGMA journal_mode") as cursor:
                assert (await cursor.fetchone())[0] == "wal"
        finally:
            await second.close()
    finally:
        await first.close()
