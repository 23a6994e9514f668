"""
Task store

Owns every read and write of task rows. A TaskStore is request scoped: it is
built around one AsyncSession and the application's TaskEventBus, and optionally
an owner_id that scopes every query and stamps new rows.

Operation          Event published (after commit)
-----------------  ------------------------------
create             created
update             updated
delete             deleted (id only)
rollover_overdue   updated (one per moved task)
publish_updated    updated (one per task, after a bulk change elsewhere)
save               caller chosen (used by TaskLifecycle)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import Select, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError, ValidationError
from app.core.events import TaskCompleted, TaskCreated, TaskDeleted, TaskEventBus, TaskUpdated
from app.core.logger import get_logger
from app.models.project import Project
from app.models.task import (
    UNASSIGNED_PROJECT,
    Task,
    TaskCreate,
    TaskFilters,
    TaskRead,
    TaskStatus,
    TaskStatusFilter,
    TaskUpdate,
    Urgency,
)
from app.services import dates

logger = get_logger(__name__, logging.INFO)

# Fields a partial update may not set to null
NON_NULLABLE_FIELDS = ("title", "status", "urgency", "due_date", "follow_up_item")


class TaskStore:
    """Task persistence plus change event publishing"""

    __slots__ = ("session", "events", "owner_id")

    def __init__(self, session: AsyncSession, events: TaskEventBus, *, owner_id: str | None = None) -> None:
        self.session = session
        self.events = events
        self.owner_id = owner_id

    # -------------------- helpers --------------------

    def _select(self) -> Select[tuple[Task]]:
        query = (
            select(Task)
            .options(selectinload(Task.project))  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        if self.owner_id is not None:
            query = query.where(Task.owner_id == self.owner_id)  # type: ignore[arg-type]
        return query

    @staticmethod
    def _ordered(query: Select[tuple[Task]]) -> Select[tuple[Task]]:
        return query.order_by(
            Task.due_date.asc(),  # type: ignore[attr-defined]
            Task.urgency.asc(),  # type: ignore[attr-defined]
            Task.created_at.asc(),  # type: ignore[attr-defined]
            Task.id.asc(),  # type: ignore[attr-defined]
        )

    @staticmethod
    def snapshot(task: Task) -> TaskRead:
        return TaskRead.model_validate(task)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def _ensure_project(self, project_id: str) -> None:
        query = select(Project.id).where(Project.id == project_id)  # type: ignore[arg-type]
        if self.owner_id is not None:
            query = query.where(Project.owner_id == self.owner_id)  # type: ignore[arg-type]
        result = await self.session.execute(query)
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Project {project_id} not found.")

    async def load(self, task_id: str) -> Task:
        """Fetch the live row (with its project) or raise NotFoundError"""
        result = await self.session.execute(self._select().where(Task.id == task_id))  # type: ignore[arg-type]
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError(f"Task {task_id} not found.")
        return task

    async def save(
        self,
        task: Task,
        event_type: type[TaskCreated] | type[TaskUpdated] | type[TaskCompleted],
    ) -> TaskRead:
        """Commit a modified row, reload it and publish event_type with the snapshot"""
        task.updated_at = datetime.now(UTC)
        self.session.add(task)
        await self._commit()

        snapshot = self.snapshot(await self.load(task.id))
        self.events.publish(event_type(task=snapshot))
        return snapshot

    # -------------------- operations --------------------

    async def create(self, data: TaskCreate) -> TaskRead:
        title = (data.title or "").strip()
        if not title:
            raise ValidationError("Title is required.")

        if data.project_id is not None:
            await self._ensure_project(data.project_id)

        due_date = dates.start_of_day(data.due_date) if data.due_date is not None else dates.today()

        task = Task(
            owner_id=self.owner_id,
            title=title,
            description=data.description,
            urgency=Urgency(data.urgency or Urgency.P3).value,
            status=TaskStatus.OPEN.value,
            due_date=due_date,
            project_id=data.project_id,
            follow_up_item=bool(data.follow_up_item),
            url1=data.url1,
            url2=data.url2,
            url3=data.url3,
        )
        snapshot = await self.save(task, TaskCreated)
        logger.info(f"Task created id={snapshot.id} urgency={snapshot.urgency.value} due={snapshot.due_date}")
        return snapshot

    async def get(self, task_id: str) -> TaskRead:
        return self.snapshot(await self.load(task_id))

    async def update(self, task_id: str, data: TaskUpdate) -> TaskRead:
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("At least one field must be provided to update.")

        for field in NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"Field '{field}' cannot be null.")

        task = await self.load(task_id)

        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError("Title cannot be empty.")

        if changes.get("project_id") is not None:
            await self._ensure_project(changes["project_id"])

        if "due_date" in changes:
            changes["due_date"] = dates.start_of_day(changes["due_date"])

        if "urgency" in changes:
            changes["urgency"] = Urgency(changes["urgency"]).value

        if "status" in changes:
            new_status = TaskStatus(changes["status"])
            changes["status"] = new_status.value
            if new_status == TaskStatus.COMPLETED:
                if task.status != TaskStatus.COMPLETED or task.completed_at is None:
                    task.completed_at = datetime.now(UTC)
            else:
                task.completed_at = None

        for field, value in changes.items():
            setattr(task, field, value)

        snapshot = await self.save(task, TaskUpdated)
        logger.info(f"Task updated id={task_id} fields={sorted(changes)}")
        return snapshot

    async def delete(self, task_id: str) -> None:
        task = await self.load(task_id)

        await self.session.delete(task)
        await self._commit()

        self.events.publish(TaskDeleted(task_id=task_id))
        logger.info(f"Task deleted id={task_id}")

    async def list(self, filters: TaskFilters | None = None) -> Sequence[TaskRead]:
        filters = filters or TaskFilters()
        query = self._select().outerjoin(Project, Task.project_id == Project.id)  # type: ignore[arg-type]

        if filters.status != TaskStatusFilter.ALL:
            query = query.where(Task.status == TaskStatus(filters.status.value).value)  # type: ignore[arg-type]

        term = (filters.search or "").strip()
        if term:
            query = query.where(
                or_(
                    Task.title.icontains(term, autoescape=True),  # type: ignore[attr-defined]
                    Task.description.icontains(term, autoescape=True),  # type: ignore[union-attr]
                    Task.url1.icontains(term, autoescape=True),  # type: ignore[union-attr]
                    Task.url2.icontains(term, autoescape=True),  # type: ignore[union-attr]
                    Task.url3.icontains(term, autoescape=True),  # type: ignore[union-attr]
                    Project.name.icontains(term, autoescape=True),  # type: ignore[attr-defined]
                )
            )

        if filters.project_id == UNASSIGNED_PROJECT:
            query = query.where(Task.project_id.is_(None))  # type: ignore[union-attr]
        elif filters.project_id is not None:
            query = query.where(Task.project_id == filters.project_id)  # type: ignore[arg-type]

        if filters.due_from is not None:
            query = query.where(Task.due_date >= dates.start_of_day(filters.due_from))  # type: ignore[arg-type]
        if filters.due_to is not None:
            query = query.where(Task.due_date <= dates.start_of_day(filters.due_to))  # type: ignore[arg-type]

        result = await self.session.execute(self._ordered(query))
        return [self.snapshot(task) for task in result.scalars().all()]

    async def rollover_overdue(self, today: date | datetime | str | None = None) -> list[TaskRead]:
        """
        Move every open task due before today to today, all in one transaction.

        Returns the moved tasks (empty when nothing was overdue). Either every
        selected task moves or, on failure, none does and the error propagates.
        """
        day = dates.today(today)
        overdue: list[Any] = [
            Task.status == TaskStatus.OPEN.value,
            Task.due_date < day,
        ]
        if self.owner_id is not None:
            overdue.append(Task.owner_id == self.owner_id)

        try:
            result = await self.session.execute(select(Task.id).where(*overdue))  # type: ignore[arg-type]
            task_ids = list(result.scalars().all())
            if not task_ids:
                await self.session.rollback()
                return []

            await self.session.execute(
                update(Task)
                .where(Task.id.in_(task_ids), *overdue)  # type: ignore[attr-defined]
                .values(due_date=day, updated_at=datetime.now(UTC))
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        moved = await self.publish_updated(task_ids, Task.due_date == day)
        logger.info(f"Rolled over {len(moved)} overdue task(s) to {day.isoformat()}")
        return moved

    async def publish_updated(self, task_ids: Sequence[str], *criteria: Any) -> list[TaskRead]:
        """Reload tasks changed by a bulk statement and publish one updated event each"""
        if not task_ids:
            return []

        result = await self.session.execute(
            self._ordered(self._select().where(Task.id.in_(task_ids), *criteria))  # type: ignore[attr-defined]
        )
        snapshots = [self.snapshot(task) for task in result.scalars().all()]

        for snapshot in snapshots:
            self.events.publish(TaskUpdated(task=snapshot))
        return snapshots
