"""Pytest configuration and fixtures for phaseline tests."""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

import pytest

from phaseline.exceptions import StoreError
from phaseline.logger import reset_logger
from phaseline.models import Task, TaskPriority, TaskStatus

TODAY = date(2024, 6, 12)

EXAMPLE_TASKS = Path(__file__).parent.parent / "examples" / "tasks.yaml"


@pytest.fixture(autouse=True)
def clean_logger() -> None:
    """Reset the logger before each test for isolation."""
    reset_logger()


@pytest.fixture
def today() -> date:
    """Fixed as-of date for delay and conflict checks."""
    return TODAY


def make_task(  # noqa: PLR0913 - mirrors Task fields
    task_id: str,
    title: str,
    *,
    status: TaskStatus | str = TaskStatus.PENDING,
    due: date | None = None,
    description: str | None = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    assignee: str | None = None,
) -> Task:
    """Create a Task with sensible defaults.

    Example:
        make_task("t1", "Order tile", due=days_from_today(-3))
    """
    return Task(
        id=task_id,
        title=title,
        description=description,
        priority=priority,
        status=TaskStatus(status),
        due_date=due,
        assignee=assignee,
    )


def days_from_today(days: int) -> date:
    """Date relative to TODAY."""
    return TODAY + timedelta(days=days)


class FakeStore:
    """In-memory TaskStore recording every call; selected task ids fail."""

    def __init__(self, tasks: list[Task] | None = None, failing: set[str] | None = None):
        self.tasks = {t.id: t for t in tasks or []}
        self.failing = failing or set()
        self.due_date_calls: list[tuple[str, date]] = []
        self.status_calls: list[tuple[str, TaskStatus]] = []

    def list_tasks(self) -> list[Task]:
        return list(self.tasks.values())

    def _check(self, task_id: str) -> None:
        if task_id in self.failing:
            raise StoreError(f"write rejected for {task_id}")

    def update_due_date(self, task_id: str, due_date: date) -> None:
        self.due_date_calls.append((task_id, due_date))
        self._check(task_id)
        if task_id in self.tasks:
            self.tasks[task_id] = self.tasks[task_id].with_due_date(due_date)

    def update_status(self, task_id: str, status: TaskStatus) -> None:
        self.status_calls.append((task_id, status))
        self._check(task_id)
        if task_id in self.tasks:
            self.tasks[task_id] = self.tasks[task_id].with_status(status)
