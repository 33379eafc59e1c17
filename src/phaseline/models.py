"""Data models for Phaseline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum

from .exceptions import BatchStateError


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority as stored by the task collection."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Phase(str, Enum):
    """The three fixed stages of project work."""

    PREPARATION = "preparation"
    EXECUTION = "execution"
    VERIFICATION = "verification"

    @property
    def display_name(self) -> str:
        """Human-readable phase name."""
        return self.value.capitalize()


# Fixed evaluation order; locks and bands depend on it
PHASE_ORDER: tuple[Phase, ...] = (Phase.PREPARATION, Phase.EXECUTION, Phase.VERIFICATION)


class ConflictStatus(str, Enum):
    """Advisory schedule conflict flag for a sub-timeline."""

    NONE = "none"
    WEATHER = "weather"
    GPS = "gps"
    BOTH = "both"


class BatchKind(str, Enum):
    """Origin of a shift batch."""

    DELAY = "delay"
    PROJECT_DATES = "project_dates"
    AUTO_SCHEDULE = "auto_schedule"


class BatchState(str, Enum):
    """Confirmation state of a shift batch."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    DISMISSED = "dismissed"


@dataclass(frozen=True)
class Task:
    """A task record received from the task collection.

    Instances are treated as copies: engines return new instances via
    with_due_date()/with_status() and never mutate what the caller passed in.
    """

    id: str
    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: date | None = None
    assignee: str | None = None

    @property
    def text(self) -> str:
        """Lower-cased title and description, used for keyword matching."""
        return f"{self.title} {self.description or ''}".lower()

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def with_due_date(self, due_date: date | None) -> Task:
        """Return a copy of this task with a different due date."""
        return replace(self, due_date=due_date)

    def with_status(self, status: TaskStatus) -> Task:
        """Return a copy of this task with a different status."""
        return replace(self, status=status)


@dataclass(frozen=True)
class Material:
    """An entry from the project's materials list."""

    item: str
    quantity: float = 0.0
    unit: str = ""


@dataclass(frozen=True)
class WeatherAlert:
    """A construction alert attached to a forecast day."""

    severity: str  # "danger", "warning", "info", ...
    message: str


# Forecast table keyed by calendar day
WeatherForecast = dict[date, list[WeatherAlert]]


@dataclass(frozen=True)
class CrewMember:
    """Last known presence of a crew member relative to the job site."""

    member_id: str
    is_on_site: bool
    name: str | None = None
    last_seen: datetime | None = None


@dataclass(frozen=True)
class ProjectDates:
    """Overall project start/end dates; either may be unknown."""

    start_date: date | None = None
    end_date: date | None = None

    @property
    def is_complete(self) -> bool:
        """True when both dates are set and the end is not before the start."""
        return (
            self.start_date is not None
            and self.end_date is not None
            and self.end_date >= self.start_date
        )


@dataclass(frozen=True)
class ShiftProposal:
    """Unconfirmed recommendation to move one task's due date.

    shift_days is None when the task had no due date before (auto-schedule).
    """

    task_id: str
    new_due_date: date
    shift_days: int | None


def _default_proposals() -> list[ShiftProposal]:
    return []


@dataclass
class ShiftBatch:
    """A group of shift proposals confirmed or dismissed as a whole.

    The batch is all-or-nothing from the user's point of view, but applying it
    issues one independent update per proposal (see timeline.batch.apply_batch).
    """

    kind: BatchKind
    proposals: list[ShiftProposal] = field(default_factory=_default_proposals)
    reason: str = ""
    state: BatchState = BatchState.PENDING
    project_dates: ProjectDates | None = None  # new project dates carried by a project_dates batch

    @property
    def task_ids(self) -> list[str]:
        return [p.task_id for p in self.proposals]

    def __len__(self) -> int:
        return len(self.proposals)

    def confirm(self) -> None:
        """Mark the batch as confirmed by the user."""
        if self.state == BatchState.DISMISSED:
            raise BatchStateError("Cannot confirm a dismissed batch")
        self.state = BatchState.CONFIRMED

    def dismiss(self) -> None:
        """Discard the batch; no task is touched."""
        if self.state == BatchState.CONFIRMED:
            raise BatchStateError("Cannot dismiss a batch that was already confirmed")
        self.state = BatchState.DISMISSED


@dataclass(frozen=True)
class StatusChangeRequest:
    """Bulk status toggle to be applied by the persistence layer."""

    task_ids: tuple[str, ...]
    new_status: TaskStatus


@dataclass(frozen=True)
class RescheduleProposal:
    """A single (task, new due date) pair produced by a drag or drop gesture.

    original_due_date and day_delta are None when an unscheduled task receives
    its first date.
    """

    task_id: str
    original_due_date: date | None
    new_due_date: date
    day_delta: int | None

    @property
    def is_first_scheduling(self) -> bool:
        return self.original_due_date is None

    def describe(self) -> str:
        """One-line summary, e.g. "t4: 2024-06-15 -> 2024-06-17 (+2 days)"."""
        if self.day_delta is None:
            return f"{self.task_id}: unscheduled -> {self.new_due_date} (new)"
        return (
            f"{self.task_id}: {self.original_due_date} -> {self.new_due_date} "
            f"({self.day_delta:+d} days)"
        )


@dataclass(frozen=True)
class ConflictRecord:
    """Conflict state of one sub-timeline. Recomputed on every pass, never persisted."""

    sub_timeline_id: str
    status: ConflictStatus = ConflictStatus.NONE
    message: str | None = None

    @property
    def has_conflict(self) -> bool:
        return self.status != ConflictStatus.NONE
