"""Wiring between the running process and the HTTP handlers.

`configure()` is called once by the bootstrap; handlers reach the stores
through the getters, which FastAPI resolves with Depends().
"""

from __future__ import annotations

from showcase.datasources import Datasources
from showcase.exceptions import DatasourceUnavailableError
from showcase.jobs import CronScheduler
from showcase.storage import ObjectStore
from showcase.upstream import HTTPService

_datasources: Datasources | None = None
_services: dict[str, HTTPService] = {}
_object_store: ObjectStore | None = None
_scheduler: CronScheduler | None = None


def configure(datasources=None, services=None, object_store=None, scheduler=None) -> None:
    global _datasources, _services, _object_store, _scheduler
    _datasources = datasources
    _services = {s.name: s for s in services or []}
    _object_store = object_store
    _scheduler = scheduler


def get_datasources() -> Datasources:
    if _datasources is None:
        raise DatasourceUnavailableError("Datasources are not configured")
    return _datasources


def get_service(name: str) -> HTTPService:
    service = _services.get(name)
    if service is None:
        raise DatasourceUnavailableError(f"HTTP service '{name}' is not configured")
    return service


def list_services() -> list[HTTPService]:
    return list(_services.values())


def get_object_store() -> ObjectStore:
    if _object_store is None:
        raise DatasourceUnavailableError("Object store is not configured")
    return _object_store


def get_scheduler() -> CronScheduler | None:
    return _scheduler
