"""
Project store

Projects group tasks. Deleting a project never deletes its tasks: they are
unassigned (project_id set to NULL) in the same transaction.

Tasks embed a summary of their project (id, name, status), so a project change
that alters that summary publishes one task updated event per linked task,
after commit:

Operation                 Task events
------------------------  ---------------------------------
update (name or status)   updated, one per task in the project
delete                    updated, one per unassigned task
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.core.events import TaskEventBus
from app.core.logger import get_logger
from app.models.project import Project, ProjectCreate, ProjectRead, ProjectStatus, ProjectUpdate
from app.models.task import Task
from app.services.task_store import TaskStore

logger = get_logger(__name__, logging.INFO)

# Project fields copied into the summary embedded in each task
SUMMARY_FIELDS = ("name", "status")


class ProjectStore:
    """Project persistence with derived task counts"""

    __slots__ = ("session", "events", "owner_id")

    def __init__(self, session: AsyncSession, events: TaskEventBus, *, owner_id: str | None = None) -> None:
        self.session = session
        self.events = events
        self.owner_id = owner_id

    def _select_with_counts(self):
        query = (
            select(Project, func.count(Task.id).label("task_count"))  # type: ignore[arg-type]
            .outerjoin(Task, Task.project_id == Project.id)  # type: ignore[arg-type]
            .group_by(Project.id)  # type: ignore[arg-type]
        )
        if self.owner_id is not None:
            query = query.where(Project.owner_id == self.owner_id)  # type: ignore[arg-type]
        return query

    @staticmethod
    def _read(project: Project, task_count: int) -> ProjectRead:
        return ProjectRead.model_validate(project, update={"task_count": int(task_count or 0)})

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def _load(self, project_id: str) -> Project:
        query = select(Project).where(Project.id == project_id)  # type: ignore[arg-type]
        if self.owner_id is not None:
            query = query.where(Project.owner_id == self.owner_id)  # type: ignore[arg-type]
        result = await self.session.execute(query)
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError(f"Project {project_id} not found.")
        return project

    async def _task_ids(self, project_id: str) -> list[str]:
        result = await self.session.execute(
            select(Task.id).where(Task.project_id == project_id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def create(self, data: ProjectCreate) -> ProjectRead:
        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Project name is required.")

        project = Project(
            owner_id=self.owner_id,
            name=name,
            description=data.description,
            status=ProjectStatus(data.status or ProjectStatus.OPEN).value,
        )
        self.session.add(project)
        await self._commit()

        logger.info(f"Project created id={project.id} name={name!r}")
        return self._read(project, 0)

    async def list(self) -> list[ProjectRead]:
        result = await self.session.execute(
            self._select_with_counts().order_by(Project.name.asc())  # type: ignore[attr-defined]
        )
        return [self._read(project, task_count) for project, task_count in result.all()]

    async def get(self, project_id: str) -> ProjectRead:
        result = await self.session.execute(
            self._select_with_counts().where(Project.id == project_id)  # type: ignore[arg-type]
        )
        row = result.first()
        if row is None:
            raise NotFoundError(f"Project {project_id} not found.")
        project, task_count = row
        return self._read(project, task_count)

    async def update(self, project_id: str, data: ProjectUpdate) -> ProjectRead:
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("At least one field must be provided to update.")

        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Project name cannot be empty.")

        if "status" in changes:
            if changes["status"] is None:
                raise ValidationError("Field 'status' cannot be null.")
            changes["status"] = ProjectStatus(changes["status"]).value

        project = await self._load(project_id)
        summary_changed = any(
            field in changes and changes[field] != getattr(project, field) for field in SUMMARY_FIELDS
        )
        for field, value in changes.items():
            setattr(project, field, value)
        project.updated_at = datetime.now(UTC)

        self.session.add(project)
        await self._commit()

        if summary_changed:
            await TaskStore(self.session, self.events).publish_updated(await self._task_ids(project_id))

        logger.info(f"Project updated id={project_id} fields={sorted(changes)}")
        return await self.get(project_id)

    async def delete(self, project_id: str) -> int:
        """Delete the project; returns how many tasks were unassigned"""
        project = await self._load(project_id)

        try:
            task_ids = await self._task_ids(project_id)
            await self.session.execute(
                update(Task)
                .where(Task.project_id == project_id)  # type: ignore[arg-type]
                .values(project_id=None, updated_at=datetime.now(UTC))
                .execution_options(synchronize_session=False)
            )
            await self.session.delete(project)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await TaskStore(self.session, self.events).publish_updated(task_ids)

        logger.info(f"Project deleted id={project_id} unassigned_tasks={len(task_ids)}")
        return len(task_ids)
