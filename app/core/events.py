"""
Task change events

Every committed task mutation publishes exactly one event on the TaskEventBus:

Event            kind        Payload
---------------  ----------  -------------------------------
TaskCreated      created     task (TaskRead snapshot)
TaskUpdated      updated     task (TaskRead snapshot)
TaskCompleted    completed   task (TaskRead snapshot)
TaskDeleted      deleted     task_id

Delivery is synchronous and in-process. Each handler receives its own deep copy
of the event, so a handler cannot change what the caller or other handlers see.
A failing handler is logged and skipped; it never affects the mutation (already
committed) or the other handlers.
"""

import logging
from collections.abc import Callable
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.core.logger import get_logger
from app.models.task import TaskRead

logger = get_logger(__name__, logging.INFO)


class _TaskEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class TaskCreated(_TaskEventBase):
    kind: Literal["created"] = "created"
    task: TaskRead


class TaskUpdated(_TaskEventBase):
    kind: Literal["updated"] = "updated"
    task: TaskRead


class TaskCompleted(_TaskEventBase):
    kind: Literal["completed"] = "completed"
    task: TaskRead


class TaskDeleted(_TaskEventBase):
    kind: Literal["deleted"] = "deleted"
    task_id: str


TaskEvent = Annotated[
    TaskCreated | TaskUpdated | TaskCompleted | TaskDeleted,
    Field(discriminator="kind"),
]

TaskEventKind = Literal["created", "updated", "completed", "deleted"]

TaskEventHandler = Callable[[TaskCreated | TaskUpdated | TaskCompleted | TaskDeleted], None]


class TaskEventBus:
    """In-process publish/subscribe channel for task change events"""

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: list[TaskEventHandler] = []

    def subscribe(self, handler: TaskEventHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that removes it again"""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: TaskCreated | TaskUpdated | TaskCompleted | TaskDeleted) -> None:
        __func__ = "publish"
        # Copy so handlers may unsubscribe while being called
        for handler in list(self._handlers):
            try:
                handler(event.model_copy(deep=True))
            except Exception as e:
                logger.error(
                    f"[{__name__}:{__func__}] Task event handler failed (kind={event.kind}): {e}",
                    exc_info=True,
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)
