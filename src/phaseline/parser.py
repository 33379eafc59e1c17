"""YAML parser for Phaseline task files."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .logger import get_logger
from .models import CrewMember, Material, ProjectDates, Task, WeatherAlert, WeatherForecast
from .schemas import TaskFileSchema

logger = get_logger()


def _default_tasks() -> list[Task]:
    return []


def _default_materials() -> list[Material]:
    return []


def _default_forecast() -> WeatherForecast:
    return {}


def _default_crew() -> list[CrewMember]:
    return []


@dataclass
class TaskFile:
    """Everything the core consumes, as loaded from one task file."""

    project: ProjectDates = field(default_factory=ProjectDates)
    tasks: list[Task] = field(default_factory=_default_tasks)
    materials: list[Material] = field(default_factory=_default_materials)
    weather: WeatherForecast = field(default_factory=_default_forecast)
    crew: list[CrewMember] = field(default_factory=_default_crew)
    project_name: str | None = None

    def get_task(self, task_id: str) -> Task | None:
        """Get a task by its ID."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


def parse_project_date(value: date | str | None, field_name: str) -> date | None:
    """Parse a project date leniently.

    Missing or malformed values yield None and a warning; they disable
    project-date propagation but never fail the load.
    """
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.warning(f"Ignoring malformed project {field_name} '{value}'; expected YYYY-MM-DD")
        return None


class TaskFileParser:
    """Parser for task file YAML."""

    def parse_file(self, file_path: Path | str) -> TaskFile:
        """Parse a YAML file into a TaskFile."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse YAML: {e}") from e

        if data is None:
            return TaskFile()
        if not isinstance(data, dict):
            raise ParseError("YAML must contain a dictionary at the root level")

        return self.parse_data(data)  # type: ignore[arg-type]

    def parse_data(self, data: dict[str, Any]) -> TaskFile:
        """Parse loaded YAML data into a TaskFile."""
        try:
            schema = TaskFileSchema(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid task file structure: {e}") from e

        project = ProjectDates(
            start_date=parse_project_date(schema.project.start_date, "start_date"),
            end_date=parse_project_date(schema.project.end_date, "end_date"),
        )

        tasks = [
            Task(
                id=task_id,
                title=task_data.title,
                description=task_data.description,
                priority=task_data.priority,
                status=task_data.status,
                due_date=task_data.due_date,
                assignee=task_data.assignee,
            )
            for task_id, task_data in schema.tasks.items()
        ]

        materials = [Material(item=m.item, quantity=m.quantity, unit=m.unit) for m in schema.materials]

        weather: WeatherForecast = {
            day: [WeatherAlert(severity=a.severity, message=a.message) for a in alerts]
            for day, alerts in schema.weather.items()
        }

        crew = [
            CrewMember(
                member_id=c.member_id,
                name=c.name,
                is_on_site=c.on_site,
                last_seen=c.last_seen,
            )
            for c in schema.crew
        ]

        return TaskFile(
            project=project,
            tasks=tasks,
            materials=materials,
            weather=weather,
            crew=crew,
            project_name=schema.project.name,
        )


def load_task_file(path: Path | str) -> TaskFile:
    """Load a task file from disk."""
    return TaskFileParser().parse_file(path)
