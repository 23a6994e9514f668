"""
Task model
"""

from datetime import UTC, date, datetime
from enum import Enum

from sqlalchemy import Column, Date, DateTime, String
from sqlmodel import Field, Relationship, SQLModel  # type: ignore[attr-defined]
from uuid_utils import uuid7

from app.models.project import Project, ProjectSummary

# Project filter value that selects tasks without a project
UNASSIGNED_PROJECT = "__unassigned__"


class TaskStatus(str, Enum):
    """Task status enum"""

    OPEN = "Open"
    COMPLETED = "Completed"


class TaskStatusFilter(str, Enum):
    """Status filter accepted by task listing"""

    OPEN = "Open"
    COMPLETED = "Completed"
    ALL = "All"


class Urgency(str, Enum):
    """Task urgency, P1 is the most urgent"""

    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"


class TaskBase(SQLModel):
    """Base task model"""

    title: str = Field(max_length=255, index=True)
    description: str | None = Field(default=None)
    urgency: Urgency = Field(
        default=Urgency.P3,
        sa_column=Column(String(2), nullable=False, index=True),
    )
    project_id: str | None = Field(default=None, foreign_key="projects.id", index=True)
    follow_up_item: bool = Field(default=False)
    url1: str | None = Field(default=None, max_length=2048)
    url2: str | None = Field(default=None, max_length=2048)
    url3: str | None = Field(default=None, max_length=2048)


class Task(TaskBase, table=True):
    """Task database model"""

    __tablename__ = "tasks"  # type: ignore[assignment]

    id: str = Field(default_factory=lambda: str(uuid7()), primary_key=True, max_length=36)
    owner_id: str | None = Field(default=None, index=True, max_length=255)
    status: TaskStatus = Field(
        default=TaskStatus.OPEN,
        sa_column=Column(String(16), nullable=False, index=True),
    )
    due_date: date = Field(sa_column=Column(Date, nullable=False, index=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    completed_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )

    project: Project | None = Relationship()


class TaskCreate(TaskBase):
    """Schema for creating a task"""

    due_date: date | datetime | None = None


class TaskUpdate(SQLModel):
    """
    Schema for updating a task

    Every field is optional; only the fields present in the payload are applied.
    project_id may be sent as null to unassign the task.
    """

    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    urgency: Urgency | None = None
    due_date: date | datetime | None = None
    project_id: str | None = None
    follow_up_item: bool | None = None
    url1: str | None = Field(default=None, max_length=2048)
    url2: str | None = Field(default=None, max_length=2048)
    url3: str | None = Field(default=None, max_length=2048)


class TaskRead(TaskBase):
    """Schema for reading a task"""

    id: str
    owner_id: str | None = None
    status: TaskStatus
    due_date: date
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    project: ProjectSummary | None = None


class TaskFilters(SQLModel):
    """Filters for task listing (all optional and combinable)"""

    status: TaskStatusFilter = TaskStatusFilter.OPEN
    search: str | None = None
    project_id: str | None = None  # UNASSIGNED_PROJECT selects tasks without a project
    due_from: date | None = None
    due_to: date | None = None
