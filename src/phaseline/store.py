"""YAML-file task store.

Stands in for the external store when running from the command line. Each
update rewrites the tasks section of the file independently, so a batch
applied through it behaves as N separate writes.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, cast

import yaml

from .exceptions import ParseError, StoreError, ValidationError
from .logger import get_logger
from .models import ProjectDates, Task, TaskStatus
from .parser import load_task_file

logger = get_logger()


class YamlTaskStore:
    """TaskStore backed by a task file on disk."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read_raw(self) -> dict[str, Any]:
        try:
            with self.path.open(encoding="utf-8") as f:
                raw: Any = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise StoreError(f"{self.path} must contain a dictionary at the root level")
        return cast(dict[str, Any], raw)

    def _write_raw(self, data: dict[str, Any]) -> None:
        try:
            with self.path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    def _update_task(self, task_id: str, key: str, value: Any) -> None:
        data = self._read_raw()
        tasks = cast(dict[Any, Any], data.get("tasks") or {})
        # Ids may have been loaded as ints
        entry_key = next((k for k in tasks if str(k) == task_id), None)
        if entry_key is None:
            raise StoreError(f"Task not found: {task_id}")
        entry = tasks[entry_key]
        if not isinstance(entry, dict):
            raise StoreError(f"Task '{task_id}' is not a mapping")
        cast(dict[str, Any], entry)[key] = value
        self._write_raw(data)

    def list_tasks(self) -> list[Task]:
        try:
            return load_task_file(self.path).tasks
        except (ParseError, ValidationError) as e:
            raise StoreError(str(e)) from e

    def update_due_date(self, task_id: str, due_date: date) -> None:
        self._update_task(task_id, "due_date", due_date)
        logger.debug(f"Stored due_date={due_date} for {task_id}")

    def update_status(self, task_id: str, status: TaskStatus) -> None:
        self._update_task(task_id, "status", status.value)
        logger.debug(f"Stored status={status.value} for {task_id}")

    def update_project_dates(self, project: ProjectDates) -> None:
        """Persist new project start/end dates."""
        data = self._read_raw()
        section = cast(dict[str, Any], data.get("project") or {})
        section["start_date"] = project.start_date
        section["end_date"] = project.end_date
        data["project"] = section
        self._write_raw(data)
