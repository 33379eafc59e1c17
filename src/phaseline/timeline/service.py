"""High-level timeline service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import TYPE_CHECKING

from phaseline.config import PhaselineConfig
from phaseline.models import (
    CrewMember,
    Material,
    Phase,
    ProjectDates,
    RescheduleProposal,
    ShiftBatch,
    StatusChangeRequest,
    Task,
    WeatherAlert,
)

from .builder import TimelineBuilder
from .core import Timeline, TimelineReport
from .delays import propose_delay_shifts
from .locks import bulk_status_change
from .propagation import auto_schedule
from .reschedule import day_width_for, map_drag, map_drop

if TYPE_CHECKING:
    from .propagation import ProjectDateTracker


class TimelineService:
    """High-level service for evaluating a project's task list.

    This service coordinates:
    - TimelineBuilder (phases, sub-timelines, locks, conflicts)
    - Delay engine (auto-shift proposals)
    - ProjectDateTracker (project start propagation), when the caller provides one

    Every evaluation is recomputed from the inputs; the only retained state is
    the caller-owned tracker.
    """

    def __init__(  # noqa: PLR0913 - needs multiple optional inputs
        self,
        tasks: Sequence[Task],
        today: date | None = None,
        *,
        materials: Sequence[Material] | None = None,
        weather: Mapping[date, Sequence[WeatherAlert]] | None = None,
        crew: Sequence[CrewMember] | None = None,
        project: ProjectDates | None = None,
        config: PhaselineConfig | None = None,
        tracker: ProjectDateTracker | None = None,
    ):
        """Initialize timeline service.

        Args:
            tasks: Task list from the store
            today: Current date for delay and conflict checks (defaults to today)
            materials: Optional materials list
            weather: Optional forecast by date
            crew: Optional crew presence list
            project: Optional project start/end dates
            config: Optional configuration
            tracker: Optional caller-owned memory of the previous project start
        """
        self.tasks = list(tasks)
        self.today = today or date.today()  # noqa: DTZ011
        self.materials = materials
        self.weather = weather
        self.crew = crew
        self.project = project
        self.config = config or PhaselineConfig()
        self.tracker = tracker
        self.builder = TimelineBuilder(self.config)
        self._timeline: Timeline | None = None

    @property
    def timeline(self) -> Timeline:
        """The timeline for the current inputs, built on first access."""
        if self._timeline is None:
            self._timeline = self.builder.build(
                self.tasks,
                self.today,
                materials=self.materials,
                weather=self.weather,
                crew=self.crew,
                project=self.project,
            )
        return self._timeline

    def evaluate(self) -> TimelineReport:
        """Run every engine and collect pending batches and warnings.

        Returns:
            TimelineReport with the timeline, pending batches and warnings
        """
        timeline = self.timeline
        report = TimelineReport(timeline=timeline)

        delay_batch = propose_delay_shifts(
            timeline, self.tasks, dedupe_targets=self.config.delays.dedupe_targets
        )
        if delay_batch is not None:
            report.batches.append(delay_batch)

        if self.tracker is not None:
            project_batch = self.tracker.observe(self.project, self.tasks)
            if project_batch is not None:
                report.batches.append(project_batch)

        if self.project is not None and self.project.start_date and self.project.end_date:
            if self.project.end_date < self.project.start_date:
                report.warnings.append(
                    f"Project end {self.project.end_date} is before start "
                    f"{self.project.start_date}; phase bands disabled"
                )

        for sub in timeline.sub_timelines:
            if sub.delayed:
                report.warnings.append(f"{sub.id} is {sub.delay_days} days behind schedule")
            if sub.conflict.has_conflict:
                report.warnings.append(
                    f"{sub.id} has a {sub.conflict.status.value} conflict: {sub.conflict.message}"
                )

        return report

    def bulk_status_change(
        self, phase: Phase, *, complete: bool = True, category: str | None = None
    ) -> StatusChangeRequest | None:
        """Status-change request for a phase or category (rejects locked phases)."""
        return bulk_status_change(self.timeline, phase, complete=complete, category=category)

    def auto_schedule(self) -> ShiftBatch | None:
        """Proposal placing unscheduled tasks within the project span."""
        return auto_schedule(
            self.tasks,
            self.project,
            self.config.weights.auto_schedule,
            classifier=self.config.classifier,
        )

    def get_task(self, task_id: str) -> Task:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise KeyError(f"Task not found: {task_id}")

    def day_width(self) -> float:
        """Day-width of the bar chart for the current tasks and project dates."""
        return day_width_for(self.tasks, self.today, self.project, self.config.reschedule)

    def reschedule_by_drag(
        self, task_id: str, pixel_delta: float, day_width: float | None = None
    ) -> RescheduleProposal | None:
        """Reschedule proposal for a bar dragged by pixel_delta pixels."""
        width = day_width if day_width is not None else self.day_width()
        return map_drag(self.get_task(task_id), pixel_delta, width)

    def reschedule_by_drop(self, task_id: str, target_date: date) -> RescheduleProposal | None:
        """Reschedule proposal for a task dropped on a calendar cell."""
        return map_drop(self.get_task(task_id), target_date)
