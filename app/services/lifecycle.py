"""
Task lifecycle operations

Single purpose mutations layered on the TaskStore. Each one re-reads the task,
derives the new value from its current state and writes it back. Concurrent
operations on the same task are last-write-wins.
"""

import logging
from datetime import UTC, datetime

from app.core.events import TaskCompleted, TaskUpdated
from app.core.logger import get_logger
from app.models.task import TaskRead, TaskStatus, Urgency
from app.services import dates, priority
from app.services.dates import DateShift
from app.services.priority import PriorityDirection
from app.services.task_store import TaskStore

logger = get_logger(__name__, logging.INFO)


class TaskLifecycle:
    """move-priority, move-date and complete actions"""

    __slots__ = ("store",)

    def __init__(self, store: TaskStore) -> None:
        self.store = store

    async def move_priority(self, task_id: str, direction: PriorityDirection) -> TaskRead:
        """
        Step the task one rung up or down the priority ladder.

        Raises BoundaryError (leaving the task untouched) at P1/P4.
        """
        task = await self.store.load(task_id)
        current = Urgency(task.urgency)
        new_urgency = priority.move_priority(current, direction)

        task.urgency = new_urgency.value  # type: ignore[assignment]
        snapshot = await self.store.save(task, TaskUpdated)
        logger.info(f"Task priority moved id={task_id} {current.value} -> {new_urgency.value}")
        return snapshot

    async def move_due_date(self, task_id: str, shift: DateShift) -> TaskRead:
        task = await self.store.load(task_id)
        current = task.due_date
        new_due_date = dates.shift_due_date(current, shift)

        task.due_date = new_due_date
        snapshot = await self.store.save(task, TaskUpdated)
        logger.info(f"Task due date moved id={task_id} {current} -> {new_due_date} ({shift.value})")
        return snapshot

    async def complete(self, task_id: str) -> TaskRead:
        """Mark the task completed; completing a completed task is a no-op without an event"""
        task = await self.store.load(task_id)
        if task.status == TaskStatus.COMPLETED:
            return self.store.snapshot(task)

        task.status = TaskStatus.COMPLETED.value  # type: ignore[assignment]
        task.completed_at = datetime.now(UTC)
        snapshot = await self.store.save(task, TaskCompleted)
        logger.info(f"Task completed id={task_id}")
        return snapshot
