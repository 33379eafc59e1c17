"""Delay detection and auto-shift proposals.

A task is delayed when its due date lies strictly before the injected
"today" and it is not completed. For every delayed sub-timeline the first
delayed task is taken as representative, and every later, incomplete task
in the whole task set is proposed to move forward by the sub-timeline's
delay magnitude.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import date, timedelta

from phaseline.logger import get_logger
from phaseline.models import BatchKind, ShiftBatch, ShiftProposal, Task

from .core import SubTimeline, Timeline

logger = get_logger()


def is_delayed(task: Task, today: date) -> bool:
    """True if the task is overdue: dated, due before today, and not completed."""
    if task.due_date is None or task.is_completed:
        return False
    return task.due_date < today


def delay_days(tasks: Sequence[Task], today: date) -> int:
    """Largest overdue distance in whole days among the tasks; 0 if none is delayed."""
    overdue = [(today - t.due_date).days for t in tasks if is_delayed(t, today) and t.due_date]
    return max(overdue, default=0)


def first_delayed_task(tasks: Sequence[Task], today: date) -> Task | None:
    """Representative delayed task: the first delayed task in iteration order."""
    for task in tasks:
        if is_delayed(task, today):
            return task
    return None


def detect_delays(timeline: Timeline) -> Iterator[SubTimeline]:
    """Yield delayed sub-timelines in phase/category order."""
    for sub in timeline.sub_timelines:
        if sub.delayed and sub.delay_days > 0:
            yield sub


def calculate_auto_shift(
    delayed_task: Task,
    all_tasks: Sequence[Task],
    days: int,
) -> list[ShiftProposal]:
    """Propose moving every later, incomplete task forward by `days`.

    Args:
        delayed_task: The representative delayed task
        all_tasks: The full task set
        days: Delay magnitude to shift by

    Returns:
        Proposals for tasks due strictly after the delayed task
    """
    if delayed_task.due_date is None or days <= 0:
        return []

    proposals: list[ShiftProposal] = []
    for task in all_tasks:
        if task.id == delayed_task.id or task.due_date is None:
            continue
        if task.due_date > delayed_task.due_date and not task.is_completed:
            proposals.append(
                ShiftProposal(
                    task_id=task.id,
                    new_due_date=task.due_date + timedelta(days=days),
                    shift_days=days,
                )
            )
    return proposals


def _dedupe(proposals: list[ShiftProposal]) -> list[ShiftProposal]:
    seen: set[str] = set()
    unique: list[ShiftProposal] = []
    for proposal in proposals:
        if proposal.task_id in seen:
            continue
        seen.add(proposal.task_id)
        unique.append(proposal)
    return unique


def propose_delay_shifts(
    timeline: Timeline,
    all_tasks: Sequence[Task],
    *,
    dedupe_targets: bool = False,
) -> ShiftBatch | None:
    """Pool auto-shift proposals for all delayed sub-timelines into one pending batch.

    Duplicate targets (a task later than several delayed tasks) are kept
    unless dedupe_targets is set, in which case the first proposal wins.

    Returns:
        A pending ShiftBatch, or None when nothing is delayed or nothing would move
    """
    pooled: list[ShiftProposal] = []
    delayed_names: list[str] = []

    for sub in detect_delays(timeline):
        representative = first_delayed_task(sub.tasks, timeline.today)
        if representative is None:
            continue
        shifts = calculate_auto_shift(representative, all_tasks, sub.delay_days)
        logger.checks(
            f"  {sub.id}: {sub.delay_days} days late (task {representative.id}), "
            f"{len(shifts)} later tasks affected"
        )
        delayed_names.append(sub.id)
        pooled.extend(shifts)

    if dedupe_targets:
        pooled = _dedupe(pooled)

    if not pooled:
        return None

    logger.proposals(
        f"Proposed delay shift for {len(pooled)} tasks (delayed: {', '.join(delayed_names)})"
    )
    return ShiftBatch(
        kind=BatchKind.DELAY,
        proposals=pooled,
        reason=f"Delayed: {', '.join(delayed_names)}",
    )
