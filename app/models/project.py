"""
Project model
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import field_validator
from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel  # type: ignore[attr-defined]
from uuid_utils import uuid7


class ProjectStatus(str, Enum):
    """Project status enum"""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ProjectBase(SQLModel):
    """Base project model"""

    name: str = Field(max_length=255, index=True)
    description: str | None = Field(default=None)
    status: ProjectStatus = Field(
        default=ProjectStatus.OPEN,
        sa_column=Column(String(32), nullable=False),
    )


class Project(ProjectBase, table=True):
    """Project database model"""

    __tablename__ = "projects"  # type: ignore[assignment]

    id: str = Field(default_factory=lambda: str(uuid7()), primary_key=True, max_length=36)
    owner_id: str | None = Field(default=None, index=True, max_length=255)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class ProjectCreate(ProjectBase):
    """Schema for creating a project"""

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class ProjectUpdate(SQLModel):
    """Schema for updating a project"""

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None


class ProjectSummary(SQLModel):
    """Project as embedded in a task"""

    id: str
    name: str
    status: ProjectStatus


class ProjectRead(ProjectBase):
    """Schema for reading a project"""

    id: str
    owner_id: str | None = None
    created_at: datetime
    updated_at: datetime
    task_count: int = 0
