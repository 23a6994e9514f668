"""
Rollover sweep

Overdue open tasks are moved to today so they surface as due today instead of
silently aging in the past. The sweep is global (all owners) and idempotent for a
given day: once every overdue task sits at today, a second run finds nothing.
"""

import logging
from datetime import date, datetime

from app.core.database import Database
from app.core.events import TaskEventBus
from app.core.logger import get_logger
from app.models.task import TaskRead
from app.services.task_store import TaskStore

logger = get_logger(__name__, logging.INFO)


class RolloverSweep:
    """Callable entry point used by the scheduler and the manual trigger endpoint"""

    __slots__ = ("database", "events")

    def __init__(self, database: Database, events: TaskEventBus) -> None:
        self.database = database
        self.events = events

    async def __call__(self, today: date | datetime | str | None = None) -> list[TaskRead]:
        return await self.sweep(today)

    async def sweep(self, today: date | datetime | str | None = None) -> list[TaskRead]:
        """
        Run one sweep in its own session.

        Args:
            today: reference day (defaults to the current UTC day)

        Returns:
            The tasks that were moved (empty when nothing was overdue)
        """
        async with self.database.session() as session:
            moved = await TaskStore(session, self.events).rollover_overdue(today)

        if moved:
            logger.info(f"Rollover sweep moved {len(moved)} task(s)")
        else:
            logger.debug("Rollover sweep found no overdue tasks")
        return moved
