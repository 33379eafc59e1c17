"""Dependency locks between consecutive phases.

A phase is locked when the phase before it is not fully complete. Locks are
recomputed from scratch on every pass; there is no lock history.
"""

from __future__ import annotations

from collections.abc import Mapping

from phaseline.exceptions import PhaseLockedError
from phaseline.logger import get_logger
from phaseline.models import PHASE_ORDER, Phase, StatusChangeRequest, TaskStatus

from .core import PhaseLock, PhaseResult, Timeline

logger = get_logger()


def lock_reason(previous_progress: int) -> str:
    return f"Previous phase verification not complete ({previous_progress}%)"


def compute_locks(progress_by_phase: Mapping[Phase, int]) -> list[PhaseLock]:
    """Compute lock state for each phase in fixed order.

    Args:
        progress_by_phase: Progress (0-100) of each phase; missing phases count as 0

    Returns:
        One PhaseLock per phase, in PHASE_ORDER
    """
    locks: list[PhaseLock] = []
    previous_progress = 100  # preparation has no predecessor
    for index, phase in enumerate(PHASE_ORDER):
        locked = index > 0 and previous_progress < 100
        reason = lock_reason(previous_progress) if locked else None
        if locked:
            logger.checks(f"  Phase {phase.value} locked: {reason}")
        locks.append(PhaseLock(phase=phase, locked=locked, reason=reason))
        previous_progress = progress_by_phase.get(phase, 0)
    return locks


def ensure_unlocked(phase: PhaseResult) -> None:
    """Reject an interactive action on a locked phase.

    Raises:
        PhaseLockedError: If the phase is locked
    """
    if phase.locked:
        raise PhaseLockedError(phase.phase.value, phase.lock_reason or "This phase is locked")


def bulk_status_change(
    timeline: Timeline,
    phase: Phase,
    *,
    complete: bool = True,
    category: str | None = None,
) -> StatusChangeRequest | None:
    """Build a status-change request for every task in a phase or one of its sub-timelines.

    Args:
        timeline: Evaluated timeline
        phase: Phase to toggle
        complete: True to mark tasks completed, False to reset them to pending
        category: Restrict to one sub-timeline (category name or sub-timeline id)

    Returns:
        The request, or None when the selection holds no tasks

    Raises:
        PhaseLockedError: If the phase is locked
        KeyError: If the category does not exist in the phase
    """
    result = timeline.get_phase(phase)
    ensure_unlocked(result)

    if category is None:
        task_ids = result.task_ids
    else:
        sub = result.get_sub_timeline(category)
        if sub is None:
            raise KeyError(f"No sub-timeline '{category}' in phase {phase.value}")
        task_ids = sub.task_ids

    if not task_ids:
        return None

    new_status = TaskStatus.COMPLETED if complete else TaskStatus.PENDING
    scope = phase.value if category is None else f"{phase.value}/{category}"
    logger.proposals(f"Bulk status change for {scope}: {len(task_ids)} tasks -> {new_status.value}")
    return StatusChangeRequest(task_ids=tuple(task_ids), new_status=new_status)
