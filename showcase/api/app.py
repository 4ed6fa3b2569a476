"""showcase HTTP app — FastAPI over SQL, documents, Redis, S3 and an upstream service.

`showcase serve` launches this with uvicorn after migrations have run.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from redis.exceptions import RedisError

from showcase import __version__
from showcase.api import users, ws
from showcase.api.deps import (
    get_datasources,
    get_object_store,
    get_scheduler,
    get_service,
    list_services,
)
from showcase.config import settings
from showcase.datasources import Datasources
from showcase.exceptions import (
    DatasourceUnavailableError,
    NotFoundError,
    ShowcaseError,
    UpstreamServiceError,
)
from showcase.migrations.base import MigrationStatus
from showcase.migrations.ledger import MigrationLedger
from showcase.storage import ObjectStore
from showcase.types import ObjectEntry, Person

_logger = logging.getLogger(__name__)

app = FastAPI(title="showcase", version=__version__)
app.include_router(users.router)
app.include_router(ws.router)

_STATUS_BY_ERROR: dict[type[ShowcaseError], int] = {
    NotFoundError: 404,
    UpstreamServiceError: 502,
    DatasourceUnavailableError: 503,
}


async def _showcase_error(request: Request, exc: ShowcaseError) -> JSONResponse:
    status = _STATUS_BY_ERROR.get(type(exc), 500)
    if status >= 500:
        _logger.warning("%s %s -> %d: %s", request.method, request.url.path, status, exc)
    return JSONResponse(status_code=status, content={"error": {"message": str(exc)}})


for _error_cls in _STATUS_BY_ERROR:
    app.add_exception_handler(_error_cls, _showcase_error)


def mount_static(directory: Path) -> bool:
    """Serve `directory` under /static if it exists."""
    if not directory.is_dir():
        return False
    if not any(getattr(r, "name", "") == "static" for r in app.routes):
        app.mount("/static", StaticFiles(directory=directory, html=True), name="static")
    return True


@app.get("/", include_in_schema=False)
async def index() -> RedirectResponse:
    return RedirectResponse(settings.root_redirect, status_code=301)


@app.get("/greet")
async def greet() -> JSONResponse:
    return JSONResponse(
        content="Hello World from new Server",
        headers={
            "X-Custom-Header": "CustomValue",
            "X-Another-Header": "AnotherValue",
        },
    )


# ── Cache ────────────────────────────────────────────────────────

@app.get("/redis")
async def read_greeting(ds: Datasources = Depends(get_datasources)) -> str:
    if ds.redis is None:
        raise DatasourceUnavailableError("Redis is not configured")
    try:
        value = await ds.redis.get("greeting")
    except RedisError as e:
        raise DatasourceUnavailableError(f"Redis read failed: {e}") from e
    return value or ""


# ── Object storage ───────────────────────────────────────────────

@app.get("/s3")
def browse_objects(store: ObjectStore = Depends(get_object_store)) -> list[ObjectEntry]:
    return store.list_dir(settings.s3_browse_prefix)


# ── Customers + payment service ──────────────────────────────────

@app.post("/customer/{name}", status_code=201)
async def create_customer(name: str, ds: Datasources = Depends(get_datasources)) -> None:
    await ds.sql.execute("INSERT INTO customers (name) VALUES (?)", (name,))


@app.get("/customer")
async def payment_user() -> str:
    resp = await get_service("payment").get("user")
    return resp.text


# ── Documents ────────────────────────────────────────────────────

@app.post("/mongo", status_code=201)
async def insert_person(person: Person, ds: Datasources = Depends(get_datasources)) -> dict:
    if ds.documents is None:
        raise DatasourceUnavailableError("Document store is not configured")
    doc_id = await ds.documents.insert_one("person", person.model_dump())
    return {"inserted_id": doc_id}


@app.get("/mongo")
async def find_person(name: str = "", ds: Datasources = Depends(get_datasources)) -> Person:
    if ds.documents is None:
        raise DatasourceUnavailableError("Document store is not configured")
    doc = await ds.documents.find_one("person", {"name": name})
    if doc is None:
        raise NotFoundError(f"No person named {name!r}")
    return Person.model_validate(doc)


# ── Health ───────────────────────────────────────────────────────

@app.get("/.well-known/alive")
async def alive() -> dict:
    return {"status": "UP"}


@app.get("/.well-known/health")
async def health(ds: Datasources = Depends(get_datasources)) -> dict:
    stores = await ds.health()
    services = {
        s.name: "UP" if await s.health_check() else "DOWN" for s in list_services()
    }

    entries = []
    if stores.get("sql") == "UP":
        ledger = MigrationLedger(ds.sql)
        if await ledger.exists():
            entries = await ledger.entries()
    applied = [e.version for e in entries if e.status == MigrationStatus.APPLIED]
    failed = [e.version for e in entries if e.status == MigrationStatus.FAILED]

    scheduler = get_scheduler()
    degraded = "DOWN" in stores.values() or "DOWN" in services.values() or bool(failed)
    return {
        "status": "DEGRADED" if degraded else "UP",
        "version": __version__,
        "datasources": stores,
        "services": services,
        "migrations": {
            "applied": len(applied),
            "latest": max(applied) if applied else None,
            "failed": failed,
        },
        "cron_jobs": scheduler.list_jobs() if scheduler else [],
    }
