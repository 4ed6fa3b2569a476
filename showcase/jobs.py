"""Cron jobs — async callbacks fired on a cron schedule.

Schedules use croniter syntax. A sixth field, when present, is seconds:
"* * * * * */10" fires every ten seconds.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from croniter import croniter

_logger = logging.getLogger(__name__)

JobCallback = Callable[[dict[str, Any]], Awaitable[None]]


class CronJob:
    """Fires its callback each time the cron schedule comes due."""

    def __init__(self, name: str, schedule: str, callback: JobCallback) -> None:
        if not croniter.is_valid(schedule):
            raise ValueError(f"Invalid cron schedule for job '{name}': {schedule!r}")
        self.name = name
        self.schedule = schedule
        self._callback = callback
        self._fire_count = 0
        self._running = False
        self._task: asyncio.Task | None = None

    def next_fire(self, after: datetime) -> datetime:
        return croniter(self.schedule, after).get_next(datetime)

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name=f"cron:{self.name}")

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _run_loop(self) -> None:
        last_due: datetime | None = None
        while self._running:
            now = datetime.now()
            # sleep() may wake a hair early; never fire the same slot twice
            due = self.next_fire(max(now, last_due) if last_due else now)
            last_due = due
            await asyncio.sleep(max(0.0, (due - datetime.now()).total_seconds()))

            if not self._running:
                break

            self._fire_count += 1
            try:
                await self._callback({
                    "job": self.name,
                    "fire_count": self._fire_count,
                    "fired_at": due.isoformat(),
                })
            except Exception:
                # One bad run must not stop the schedule.
                _logger.exception("Cron job '%s' failed", self.name)

    @property
    def fire_count(self) -> int:
        return self._fire_count

    @property
    def is_running(self) -> bool:
        return self._running


class CronScheduler:
    """Owns the process's cron jobs and their lifecycle."""

    def __init__(self) -> None:
        self._jobs: dict[str, CronJob] = {}

    def add_job(self, schedule: str, name: str, callback: JobCallback) -> CronJob:
        if name in self._jobs:
            raise ValueError(f"Cron job '{name}' already registered")
        job = CronJob(name, schedule, callback)
        self._jobs[name] = job
        return job

    async def start(self) -> None:
        for job in self._jobs.values():
            await job.start()
            _logger.info("Cron job '%s' scheduled: %s", job.name, job.schedule)

    async def stop(self) -> None:
        for job in self._jobs.values():
            await job.stop()

    def list_jobs(self) -> list[dict[str, Any]]:
        return [
            {"name": j.name, "schedule": j.schedule, "fire_count": j.fire_count, "running": j.is_running}
            for j in self._jobs.values()
        ]


async def log_current_time(event: dict[str, Any]) -> None:
    _logger.info("current time is %s", datetime.now().isoformat())
