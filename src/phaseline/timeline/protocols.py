"""Protocol definitions for the persistence collaborator."""

from datetime import date
from typing import Protocol

from phaseline.models import Task, TaskStatus


class TaskStore(Protocol):
    """Protocol for the external task store.

    Each call is an independent write; a store reports failure by raising
    StoreError for that single task.
    """

    def list_tasks(self) -> list[Task]:
        """Return copies of all task records.

        Returns:
            List of tasks in store order
        """
        ...

    def update_due_date(self, task_id: str, due_date: date) -> None:
        """Persist a new due date for one task.

        Args:
            task_id: Id of the task to update
            due_date: New due date
        """
        ...

    def update_status(self, task_id: str, status: TaskStatus) -> None:
        """Persist a new status for one task.

        Args:
            task_id: Id of the task to update
            status: New status
        """
        ...
