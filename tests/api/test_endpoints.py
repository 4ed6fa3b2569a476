"""Tests for the demo endpoints: greet, redirect, cache, objects, customers, documents, health."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from showcase.api import app, configure
from showcase.api.app import mount_static
from showcase.exceptions import UpstreamServiceError
from showcase.types import ObjectEntry
from showcase.upstream import HTTPService


def _payment(handler):
    return HTTPService("payment", "http://payment.local", transport=httpx.MockTransport(handler))


# ── stateless ───────────────────────────────────────────────────

def test_greet_sets_custom_headers():
    with TestClient(app) as c:
        resp = c.get("/greet")
    assert resp.status_code == 200
    assert resp.json() == "Hello World from new Server"
    assert resp.headers["X-Custom-Header"] == "CustomValue"
    assert resp.headers["X-Another-Header"] == "AnotherValue"


def test_root_redirects_permanently():
    with TestClient(app) as c:
        resp = c.get("/", follow_redirects=False)
    assert resp.status_code == 301
    assert resp.headers["location"] == "/static/"


def test_alive():
    with TestClient(app) as c:
        assert c.get("/.well-known/alive").json() == {"status": "UP"}


def test_unconfigured_datasources_are_503():
    configure()
    with TestClient(app) as c:
        resp = c.get("/users")
    assert resp.status_code == 503
    assert "not configured" in resp.json()["error"]["message"]


def test_mount_static(tmp_path):
    assert mount_static(tmp_path / "missing") is False

    (tmp_path / "index.html").write_text("<h1>showcase</h1>")
    assert mount_static(tmp_path) is True
    assert mount_static(tmp_path) is True  # mounting twice is harmless

    with TestClient(app) as c:
        resp = c.get("/static/")
    assert resp.status_code == 200
    assert "showcase" in resp.text


# ── redis ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_redis_greeting(client, migrated):
    migrated.redis = AsyncMock()
    migrated.redis.get.return_value = "hello"

    resp = await client.get("/redis")

    assert resp.json() == "hello"
    migrated.redis.get.assert_awaited_once_with("greeting")


@pytest.mark.asyncio
async def test_redis_missing_key_is_empty(client, migrated):
    migrated.redis = AsyncMock()
    migrated.redis.get.return_value = None

    assert (await client.get("/redis")).json() == ""


@pytest.mark.asyncio
async def test_redis_down_is_503(client, migrated):
    migrated.redis = AsyncMock()
    migrated.redis.get.side_effect = RedisConnectionError("refused")

    assert (await client.get("/redis")).status_code == 503


@pytest.mark.asyncio
async def test_redis_not_configured_is_503(client):
    assert (await client.get("/redis")).status_code == 503


# ── object storage ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_s3_listing(client, migrated):
    store = MagicMock()
    store.list_dir.return_value = [
        ObjectEntry(name="tools", type="Dir"),
        ObjectEntry(name="app.tar.gz", type="File", size=10, mtime="2024-12-01T08:30:00+00:00"),
    ]
    configure(datasources=migrated, object_store=store)

    resp = await client.get("/s3")

    assert resp.status_code == 200
    assert [e["type"] for e in resp.json()] == ["Dir", "File"]
    store.list_dir.assert_called_once_with("software")


@pytest.mark.asyncio
async def test_s3_failure_is_502(client, migrated):
    store = MagicMock()
    store.list_dir.side_effect = UpstreamServiceError("bucket gone")
    configure(datasources=migrated, object_store=store)

    assert (await client.get("/s3")).status_code == 502


# ── customers ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_customer(client, migrated):
    resp = await client.post("/customer/alice")
    assert resp.status_code == 201

    cursor = await migrated.sql.execute("SELECT name FROM customers")
    assert [row[0] for row in await cursor.fetchall()] == ["alice"]


@pytest.mark.asyncio
async def test_customer_proxies_payment_service(client, migrated):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, text='{"user": "alice"}')

    configure(datasources=migrated, services=[_payment(handler)])

    resp = await client.get("/customer")

    assert resp.status_code == 200
    assert resp.json() == '{"user": "alice"}'
    assert seen == ["/user"]


@pytest.mark.asyncio
async def test_customer_upstream_down_is_502(client, migrated):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    configure(datasources=migrated, services=[_payment(handler)])

    resp = await client.get("/customer")
    assert resp.status_code == 502
    assert "payment" in resp.json()["error"]["message"]


# ── documents ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_mongo_insert_and_find(client):
    resp = await client.post("/mongo", json={"name": "ada", "age": 36, "city": "London"})
    assert resp.status_code == 201
    assert resp.json()["inserted_id"]

    resp = await client.get("/mongo", params={"name": "ada"})
    assert resp.status_code == 200
    assert resp.json() == {"name": "ada", "age": 36, "city": "London"}


@pytest.mark.asyncio
async def test_mongo_find_missing_is_404(client):
    resp = await client.get("/mongo", params={"name": "nobody"})
    assert resp.status_code == 404


# ── health ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_reports_stores_and_migrations(client, migrated):
    configure(
        datasources=migrated,
        services=[_payment(lambda r: httpx.Response(200, json={"status": "UP"}))],
    )

    body = (await client.get("/.well-known/health")).json()

    assert body["status"] == "UP"
    assert body["datasources"] == {"sql": "UP", "documents": "UP"}
    assert body["services"] == {"payment": "UP"}
    assert body["migrations"] == {"applied": 2, "latest": 20240301100000, "failed": []}


@pytest.mark.asyncio
async def test_health_degraded_when_service_down(client, migrated):
    configure(datasources=migrated, services=[_payment(lambda r: httpx.Response(503))])

    body = (await client.get("/.well-known/health")).json()

    assert body["status"] == "DEGRADED"
    assert body["services"] == {"payment": "DOWN"}


@pytest.mark.asyncio
async def test_health_before_first_migration(datasources):
    configure(datasources=datasources)
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            body = (await c.get("/.well-known/health")).json()
    finally:
        configure()

    assert body["status"] == "UP"
    assert body["migrations"] == {"applied": 0, "latest": None, "failed": []}
