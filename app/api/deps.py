"""
Shared endpoint dependencies

The application objects (event bus, broadcaster, rollover sweep) are created in
app.main.lifespan and kept on app.state; these dependencies hand them to routes.
"""

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.events import TaskEventBus
from app.core.realtime import RealtimeBroadcaster
from app.services.lifecycle import TaskLifecycle
from app.services.project_store import ProjectStore
from app.services.rollover import RolloverSweep
from app.services.task_store import TaskStore


def get_event_bus(request: Request) -> TaskEventBus:
    return request.app.state.event_bus


def get_broadcaster(request: Request) -> RealtimeBroadcaster:
    return request.app.state.broadcaster


def get_rollover_sweep(request: Request) -> RolloverSweep:
    return request.app.state.rollover_sweep


def get_owner_id(
    x_owner_id: str | None = Header(
        default=None,
        description="Optional caller scope; when set, only rows owned by this id are visible",
    ),
) -> str | None:
    owner_id = (x_owner_id or "").strip()
    return owner_id or None


def get_task_store(
    db: AsyncSession = Depends(get_db),
    events: TaskEventBus = Depends(get_event_bus),
    owner_id: str | None = Depends(get_owner_id),
) -> TaskStore:
    return TaskStore(db, events, owner_id=owner_id)


def get_task_lifecycle(store: TaskStore = Depends(get_task_store)) -> TaskLifecycle:
    return TaskLifecycle(store)


def get_project_store(
    db: AsyncSession = Depends(get_db),
    events: TaskEventBus = Depends(get_event_bus),
    owner_id: str | None = Depends(get_owner_id),
) -> ProjectStore:
    return ProjectStore(db, events, owner_id=owner_id)
