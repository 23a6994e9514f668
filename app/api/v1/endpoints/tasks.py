"""
Task endpoints

Endpoint                                 Operation
---------------------------------------  ------------------------------
GET /                                    TaskStore.list
POST /                                   TaskStore.create
GET /{task_id}                           TaskStore.get
PATCH /{task_id}                         TaskStore.update
DELETE /{task_id}                        TaskStore.delete
POST /{task_id}/actions/move-priority    TaskLifecycle.move_priority
POST /{task_id}/actions/move-date        TaskLifecycle.move_due_date
POST /{task_id}/actions/complete         TaskLifecycle.complete

Domain errors are rendered by the handlers in app.main:
ValidationError/BoundaryError/InvalidDateError -> 400, NotFoundError -> 404.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from app.api.deps import get_task_lifecycle, get_task_store
from app.models.task import UNASSIGNED_PROJECT, TaskCreate, TaskFilters, TaskRead, TaskStatusFilter, TaskUpdate
from app.services.dates import DateShift
from app.services.lifecycle import TaskLifecycle
from app.services.priority import PriorityDirection
from app.services.task_store import TaskStore

router: APIRouter = APIRouter()


# ---------------------------------------------------------------------------
# Action payloads
# ---------------------------------------------------------------------------


class MovePriorityIn(BaseModel):
    """Body of the move-priority action"""

    direction: PriorityDirection = Field(..., examples=["up"])


class MoveDateIn(BaseModel):
    """Body of the move-date action"""

    type: DateShift = Field(..., examples=["nextMonday"])


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    status_filter: TaskStatusFilter = Query(TaskStatusFilter.OPEN, alias="status"),
    search: str | None = Query(None, description="Case-insensitive match on title, description, URLs and project name"),
    project_id: str | None = Query(None, description=f"Project id, or '{UNASSIGNED_PROJECT}' for tasks without one"),
    due_from: date | None = Query(None, alias="from"),
    due_to: date | None = Query(None, alias="to"),
    store: TaskStore = Depends(get_task_store),
):
    """
    List tasks ordered by due date, then urgency, then creation time
    """
    filters = TaskFilters(
        status=status_filter,
        search=search,
        project_id=project_id,
        due_from=due_from,
        due_to=due_to,
    )
    return await store.list(filters)


@router.post(
    "/",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Title is empty"},
        404: {"description": "Project not found"},
    },
)
async def create_task(
    task_data: TaskCreate,
    store: TaskStore = Depends(get_task_store),
):
    """
    Create new task (urgency defaults to P3, due date to today)
    """
    return await store.create(task_data)


@router.get("/{task_id}", response_model=TaskRead, responses={404: {"description": "Task not found"}})
async def get_task(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
):
    """
    Get task by ID
    """
    return await store.get(task_id)


@router.patch(
    "/{task_id}",
    response_model=TaskRead,
    responses={
        400: {"description": "Empty update or invalid field value"},
        404: {"description": "Task or project not found"},
    },
)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    store: TaskStore = Depends(get_task_store),
):
    """
    Partially update task; fields missing from the body keep their value
    """
    return await store.update(task_id, task_data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, responses={404: {"description": "Task not found"}})
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
):
    """
    Delete task
    """
    await store.delete(task_id)
    return None


@router.post(
    "/{task_id}/actions/move-priority",
    response_model=TaskRead,
    responses={
        400: {"description": "Priority is already at P1 (up) or P4 (down)"},
        404: {"description": "Task not found"},
    },
)
async def move_task_priority(
    task_id: str,
    payload: MovePriorityIn,
    lifecycle: TaskLifecycle = Depends(get_task_lifecycle),
):
    """
    Move task one priority level up (more urgent) or down
    """
    return await lifecycle.move_priority(task_id, payload.direction)


@router.post(
    "/{task_id}/actions/move-date",
    response_model=TaskRead,
    responses={404: {"description": "Task not found"}},
)
async def move_task_due_date(
    task_id: str,
    payload: MoveDateIn,
    lifecycle: TaskLifecycle = Depends(get_task_lifecycle),
):
    """
    Move task due date to the next day, two days later, or the next Monday
    """
    return await lifecycle.move_due_date(task_id, payload.type)


@router.post(
    "/{task_id}/actions/complete",
    response_model=TaskRead,
    responses={404: {"description": "Task not found"}},
)
async def complete_task(
    task_id: str,
    lifecycle: TaskLifecycle = Depends(get_task_lifecycle),
):
    """
    Mark task completed (completing an already completed task changes nothing)
    """
    return await lifecycle.complete(task_id)
