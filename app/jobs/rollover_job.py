"""
Rollover scheduler

Runs the rollover sweep once at startup (to catch up on days the process was
down) and then at every occurrence of a cron expression, evaluated in a
configured time zone (default "0 2 * * *", daily at 02:00).

Any standard five field expression is accepted, e.g. "0 */6 * * *" or
"30 1 * * 1-5". An invalid expression fails at startup with ValueError.

To stop the scheduler, call stop() (it cancels the background task).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from croniter import croniter  # type: ignore[import-untyped]

from app.core.logger import get_logger

logger = get_logger(__name__, logging.INFO)

SweepCallable = Callable[[], Awaitable[list[Any]]]


def validate_cron(expression: str) -> str:
    """
    Return the normalized cron expression.

    Raises ValueError when croniter cannot parse it.
    """
    normalized = " ".join(expression.split())
    if not normalized or not croniter.is_valid(normalized):
        raise ValueError(f"Invalid cron expression: {expression!r}")
    return normalized


class RolloverScheduler:
    """Background asyncio loop around a sweep callable"""

    __slots__ = ("sweep", "cron", "tz", "_task")

    def __init__(self, sweep: SweepCallable, *, cron: str = "0 2 * * *", timezone: str = "UTC") -> None:
        self.sweep = sweep
        self.cron = validate_cron(cron)
        self.tz = ZoneInfo(timezone)
        self._task: asyncio.Task[None] | None = None

    def next_run_after(self, now: datetime) -> datetime:
        """Next firing time strictly after now, as an aware datetime in the configured zone"""
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        local_now = now.astimezone(self.tz)
        return croniter(self.cron, local_now).get_next(datetime)

    def next_run_following(self, scheduled: datetime, now: datetime) -> datetime:
        """Next firing time after a run scheduled for `scheduled`, even when the sleep woke early"""
        return self.next_run_after(max(scheduled, now))

    async def run_once(self) -> int:
        """Run the sweep; failures are logged and reported as -1, never raised"""
        __func__ = "run_once"
        try:
            moved = await self.sweep()
        except Exception as e:
            logger.error(f"[{__name__}:{__func__}] Rollover sweep failed, retrying on next tick: {e}", exc_info=True)
            return -1

        if moved:
            logger.info(f"Rollover job updated {len(moved)} task(s).")
        return len(moved)

    async def _loop(self) -> None:
        await self.run_once()

        next_run = self.next_run_after(datetime.now(UTC))
        while True:
            delay = (next_run - datetime.now(UTC)).total_seconds()
            logger.info(f"Next rollover scheduled at {next_run.isoformat()} (in {delay:.0f}s)")
            await asyncio.sleep(max(0.0, delay))
            await self.run_once()
            next_run = self.next_run_following(next_run, datetime.now(UTC))

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="rollover-scheduler")
        logger.info(f"Rollover scheduler started (cron '{self.cron}' {self.tz.key})")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Rollover scheduler stopped")
