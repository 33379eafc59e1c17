"""Core dataclasses for timeline evaluation results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from phaseline.models import ConflictRecord, Phase, ShiftBatch, Task

GENERAL_CATEGORY = "general"
GENERAL_TASKS_NAME = "General Tasks"


def compute_progress(tasks: Sequence[Task]) -> int:
    """Percentage of completed tasks, rounded half up; 0 for an empty group."""
    total = len(tasks)
    if total == 0:
        return 0
    completed = sum(1 for t in tasks if t.is_completed)
    # Integer form of floor(completed / total * 100 + 0.5)
    return (200 * completed + total) // (2 * total)


def date_span(tasks: Sequence[Task]) -> tuple[date | None, date | None]:
    """Earliest and latest due date among dated tasks; unscheduled tasks are ignored."""
    dates = [t.due_date for t in tasks if t.due_date is not None]
    if not dates:
        return None, None
    return min(dates), max(dates)


def sub_timeline_id(phase: Phase, category: str) -> str:
    return f"{phase.value}-{category}"


def _default_warnings() -> list[str]:
    return []


def _default_batches() -> list[ShiftBatch]:
    return []


@dataclass(frozen=True)
class SubTimeline:
    """A (phase, category) grouping of tasks with derived dates and progress."""

    id: str
    name: str
    phase: Phase
    category: str
    tasks: tuple[Task, ...]
    start_date: date | None
    end_date: date | None
    progress: int
    delayed: bool
    delay_days: int
    conflict: ConflictRecord

    @property
    def task_ids(self) -> list[str]:
        return [t.id for t in self.tasks]

    @property
    def is_general(self) -> bool:
        return self.category == GENERAL_CATEGORY


@dataclass(frozen=True)
class PhaseLock:
    """Lock state of one phase for a single evaluation pass."""

    phase: Phase
    locked: bool
    reason: str | None = None


@dataclass(frozen=True)
class PhaseResult:
    """One phase of the evaluated timeline."""

    phase: Phase
    sub_timelines: tuple[SubTimeline, ...]
    progress: int
    locked: bool
    lock_reason: str | None
    start_date: date | None = None  # band derived from project dates
    end_date: date | None = None

    @property
    def name(self) -> str:
        return self.phase.display_name

    @property
    def tasks(self) -> list[Task]:
        return [t for sub in self.sub_timelines for t in sub.tasks]

    @property
    def task_ids(self) -> list[str]:
        return [t.id for t in self.tasks]

    def get_sub_timeline(self, category: str) -> SubTimeline | None:
        """Get a sub-timeline of this phase by category (or by full id)."""
        for sub in self.sub_timelines:
            if category in (sub.category, sub.id):
                return sub
        return None


@dataclass(frozen=True)
class Timeline:
    """Phases in fixed order, produced by one builder pass."""

    phases: tuple[PhaseResult, ...]
    today: date

    def get_phase(self, phase: Phase) -> PhaseResult:
        for result in self.phases:
            if result.phase == phase:
                return result
        raise KeyError(phase)

    @property
    def sub_timelines(self) -> list[SubTimeline]:
        return [sub for p in self.phases for sub in p.sub_timelines]

    def phase_of(self, task_id: str) -> Phase | None:
        for result in self.phases:
            if task_id in result.task_ids:
                return result.phase
        return None

    def category_of(self, task_id: str) -> str | None:
        for sub in self.sub_timelines:
            if task_id in sub.task_ids:
                return sub.category
        return None


@dataclass
class TimelineReport:
    """Everything one evaluation pass exposes to collaborators."""

    timeline: Timeline
    batches: list[ShiftBatch] = field(default_factory=_default_batches)
    warnings: list[str] = field(default_factory=_default_warnings)

    @property
    def phases(self) -> tuple[PhaseResult, ...]:
        return self.timeline.phases
