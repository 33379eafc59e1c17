"""Pydantic schemas for task file validation."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .models import TaskPriority, TaskStatus


class TaskSchema(BaseModel):
    """Schema for one task record."""

    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: date | None = None
    assignee: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_datetime_to_date(cls, v: Any) -> Any:
        """Accept full timestamps; only the calendar day is kept."""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return datetime.fromisoformat(v).date()
        return v


class MaterialSchema(BaseModel):
    """Schema for a materials list entry."""

    item: str
    quantity: float = 0.0
    unit: str = ""


class WeatherAlertSchema(BaseModel):
    """Schema for a forecast alert."""

    severity: str
    message: str

    @field_validator("severity", mode="before")
    @classmethod
    def lowercase_severity(cls, v: Any) -> str:
        """Severity comparisons are case-insensitive."""
        return str(v).lower()


class CrewMemberSchema(BaseModel):
    """Schema for a crew presence entry."""

    member_id: str
    name: str | None = None
    on_site: bool = False
    last_seen: datetime | None = None

    @field_validator("member_id", mode="before")
    @classmethod
    def coerce_id_to_string(cls, v: Any) -> str:
        return str(v)


class ProjectSchema(BaseModel):
    """Schema for project-level dates.

    Dates are kept raw here; a malformed value disables date propagation
    instead of rejecting the whole file (see parser.parse_project_date).
    """

    name: str | None = None
    start_date: date | str | None = None
    end_date: date | str | None = None


class TaskFileSchema(BaseModel):
    """Schema for the entire task file."""

    project: ProjectSchema = Field(default_factory=ProjectSchema)
    tasks: dict[str, TaskSchema] = Field(default_factory=dict)
    materials: list[MaterialSchema] = Field(default_factory=list)
    weather: dict[date, list[WeatherAlertSchema]] = Field(default_factory=dict)
    crew: list[CrewMemberSchema] = Field(default_factory=list)

    @field_validator("tasks", mode="before")
    @classmethod
    def coerce_task_ids(cls, v: Any) -> Any:
        """YAML may load numeric ids as ints; ids are always strings."""
        if isinstance(v, dict):
            return {str(key): value for key, value in v.items()}  # type: ignore[misc]
        return v
