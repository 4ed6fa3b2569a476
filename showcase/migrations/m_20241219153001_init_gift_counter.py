"""Seed the Redis gift counter.

Redis writes are outside the SQL transaction; re-running this after a
failure simply overwrites the key.
"""

from __future__ import annotations

from showcase.datasources import Datasources
from showcase.exceptions import DatasourceUnavailableError

GIFT_COUNTER_KEY = "gift_counter"
GIFT_COUNTER_START = 100000


async def up(ds: Datasources) -> None:
    if ds.redis is None:
        raise DatasourceUnavailableError("Redis is not configured (set SHOWCASE_REDIS_URL)")
    await ds.redis.set(GIFT_COUNTER_KEY, GIFT_COUNTER_START)
