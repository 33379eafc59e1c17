"""Applying confirmed shift batches and status-change requests.

A batch is confirmed as a whole but written as independent per-task
updates. A failure on one task does not stop the others; every outcome is
reported individually.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from phaseline.exceptions import BatchStateError, StoreError
from phaseline.logger import get_logger
from phaseline.models import BatchState, ShiftBatch, StatusChangeRequest

if TYPE_CHECKING:
    from .protocols import TaskStore

logger = get_logger()


@dataclass(frozen=True)
class TaskUpdateResult:
    """Outcome of one independent update."""

    task_id: str
    ok: bool
    error: str | None = None


def _default_results() -> list[TaskUpdateResult]:
    return []


@dataclass
class BatchApplyReport:
    """Per-task outcomes of applying a batch or status-change request."""

    results: list[TaskUpdateResult] = field(default_factory=_default_results)

    @property
    def succeeded(self) -> list[str]:
        return [r.task_id for r in self.results if r.ok]

    @property
    def failed(self) -> list[TaskUpdateResult]:
        return [r for r in self.results if not r.ok]

    @property
    def all_ok(self) -> bool:
        return all(r.ok for r in self.results)


def apply_batch(batch: ShiftBatch, store: TaskStore) -> BatchApplyReport:
    """Write every proposal of a confirmed batch to the store.

    Args:
        batch: A batch in the confirmed state
        store: Task store receiving one update_due_date call per proposal

    Returns:
        BatchApplyReport with one result per proposal, in proposal order

    Raises:
        BatchStateError: If the batch has not been confirmed
    """
    if batch.state != BatchState.CONFIRMED:
        raise BatchStateError(
            f"Cannot apply a {batch.state.value} {batch.kind.value} batch; confirm it first"
        )

    report = BatchApplyReport()
    for proposal in batch.proposals:
        try:
            store.update_due_date(proposal.task_id, proposal.new_due_date)
        except StoreError as e:
            logger.warning(f"Failed to move {proposal.task_id}: {e}")
            report.results.append(TaskUpdateResult(proposal.task_id, ok=False, error=str(e)))
            continue
        report.results.append(TaskUpdateResult(proposal.task_id, ok=True))

    logger.proposals(
        f"Applied {batch.kind.value} batch: {len(report.succeeded)} moved, "
        f"{len(report.failed)} failed"
    )
    return report


def apply_status_change(request: StatusChangeRequest, store: TaskStore) -> BatchApplyReport:
    """Write a bulk status toggle as independent per-task updates."""
    report = BatchApplyReport()
    for task_id in request.task_ids:
        try:
            store.update_status(task_id, request.new_status)
        except StoreError as e:
            logger.warning(f"Failed to update status of {task_id}: {e}")
            report.results.append(TaskUpdateResult(task_id, ok=False, error=str(e)))
            continue
        report.results.append(TaskUpdateResult(task_id, ok=True))
    return report
