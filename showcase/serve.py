"""showcase live server — migrations, cron jobs and the HTTP app in one process."""

from __future__ import annotations

import asyncio
import logging

import uvicorn
from rich.logging import RichHandler

from showcase.api import app, configure
from showcase.api.app import mount_static
from showcase.config import ShowcaseSettings, settings
from showcase.datasources import Datasources, connect_datasources
from showcase.jobs import CronScheduler, log_current_time
from showcase.migrations import all_migrations
from showcase.migrations.runner import apply_migrations
from showcase.storage import ObjectStore
from showcase.upstream import HTTPService

_logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


async def migrate(config: ShowcaseSettings = settings) -> list[int]:
    """Connect, apply pending migrations, disconnect."""
    registry = all_migrations()
    datasources = await connect_datasources(config)
    try:
        return await apply_migrations(registry, datasources)
    finally:
        await datasources.close()


async def _bootstrap(config: ShowcaseSettings) -> Datasources:
    # Build the registry before touching any store: duplicates are fatal.
    registry = all_migrations()
    datasources = await connect_datasources(config)
    try:
        applied = await apply_migrations(registry, datasources)
    except BaseException:
        await datasources.close()
        raise
    if applied:
        _logger.info("Applied migrations: %s", applied)
    return datasources


async def main(config: ShowcaseSettings = settings) -> None:
    datasources = await _bootstrap(config)

    payment = HTTPService(
        "payment", config.payment_addr, timeout=config.payment_timeout_seconds,
    )
    object_store = ObjectStore.from_settings(config)

    scheduler = CronScheduler()
    scheduler.add_job(config.cron_schedule, "log-time", log_current_time)

    configure(
        datasources=datasources,
        services=[payment],
        object_store=object_store,
        scheduler=scheduler,
    )
    if mount_static(config.static_dir):
        _logger.info("Serving static files from %s", config.static_dir)

    await scheduler.start()

    server = uvicorn.Server(uvicorn.Config(
        app,
        host=config.http_host,
        port=config.http_port,
        log_level=config.log_level.lower(),
        ws_max_size=config.ws_max_size,
        ws_per_message_deflate=config.ws_compression,
    ))
    try:
        await server.serve()
    finally:
        await scheduler.stop()
        configure()
        await datasources.close()


if __name__ == "__main__":
    configure_logging(settings.log_level)
    asyncio.run(main())
