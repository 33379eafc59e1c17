"""Timeline builder: tasks -> phases -> sub-timelines."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from phaseline.config import PhaselineConfig
from phaseline.logger import get_logger
from phaseline.models import (
    PHASE_ORDER,
    CrewMember,
    Material,
    Phase,
    ProjectDates,
    Task,
    WeatherAlert,
)

from .classify import OTHER_CATEGORY, categorize_task, classify_phase
from .conflicts import detect_conflict
from .core import (
    GENERAL_CATEGORY,
    GENERAL_TASKS_NAME,
    PhaseResult,
    SubTimeline,
    Timeline,
    compute_progress,
    date_span,
    sub_timeline_id,
)
from .delays import delay_days, is_delayed
from .locks import compute_locks
from .propagation import phase_bands

logger = get_logger()


class TimelineBuilder:
    """Assemble tasks into the phase/sub-timeline tree.

    The builder is a pure transform: given the same tasks and external inputs
    it always yields the same Timeline. It holds configuration only, never
    task state.
    """

    def __init__(self, config: PhaselineConfig | None = None):
        """Initialize builder.

        Args:
            config: Classification rules and weights (defaults to built-in rules)
        """
        self.config = config or PhaselineConfig()
        self.category_table = self.config.categories.as_table()

    def group_by_phase(self, tasks: Sequence[Task]) -> dict[Phase, list[Task]]:
        """Partition tasks by phase, preserving input order within each phase."""
        grouped: dict[Phase, list[Task]] = {phase: [] for phase in PHASE_ORDER}
        for task in tasks:
            grouped[classify_phase(task, self.config.classifier)].append(task)
        return grouped

    def group_by_category(
        self,
        tasks: Sequence[Task],
        materials: Sequence[Material] | None = None,
    ) -> list[tuple[str, list[Task]]]:
        """Partition tasks by category in table order, with uncategorized tasks last.

        Empty categories are omitted.
        """
        buckets: dict[str, list[Task]] = {name: [] for name, _ in self.category_table}
        general: list[Task] = []
        for task in tasks:
            category = categorize_task(task, materials, self.category_table)
            if category == OTHER_CATEGORY:
                general.append(task)
            else:
                buckets[category].append(task)

        groups = [(name, members) for name, members in buckets.items() if members]
        if general:
            groups.append((GENERAL_CATEGORY, general))
        return groups

    def _build_sub_timeline(  # noqa: PLR0913 - mirrors build() inputs
        self,
        phase: Phase,
        category: str,
        tasks: list[Task],
        today: date,
        weather: Mapping[date, Sequence[WeatherAlert]] | None,
        crew: Sequence[CrewMember] | None,
    ) -> SubTimeline:
        sub_id = sub_timeline_id(phase, category)
        start, end = date_span(tasks)
        days_late = delay_days(tasks, today)
        name = GENERAL_TASKS_NAME if category == GENERAL_CATEGORY else category.capitalize()
        return SubTimeline(
            id=sub_id,
            name=name,
            phase=phase,
            category=category,
            tasks=tuple(tasks),
            start_date=start,
            end_date=end,
            progress=compute_progress(tasks),
            delayed=any(is_delayed(t, today) for t in tasks),
            delay_days=days_late,
            conflict=detect_conflict(sub_id, phase, tasks, today, weather, crew),
        )

    def build(  # noqa: PLR0913 - external inputs are all optional
        self,
        tasks: Sequence[Task],
        today: date,
        *,
        materials: Sequence[Material] | None = None,
        weather: Mapping[date, Sequence[WeatherAlert]] | None = None,
        crew: Sequence[CrewMember] | None = None,
        project: ProjectDates | None = None,
    ) -> Timeline:
        """Build the timeline for one evaluation pass.

        Args:
            tasks: Flat task list from the store
            today: Current date, injected so evaluation stays deterministic
            materials: Optional materials list used to link tasks to categories
            weather: Optional forecast by date
            crew: Optional crew presence list
            project: Optional project dates for phase bands

        Returns:
            Timeline with phases in fixed order
        """
        logger.debug(f"Building timeline for {len(tasks)} tasks as of {today}")
        by_phase = self.group_by_phase(tasks)
        progress = {phase: compute_progress(by_phase[phase]) for phase in PHASE_ORDER}
        locks = {lock.phase: lock for lock in compute_locks(progress)}
        bands = phase_bands(project, self.config.weights.bands)

        phases: list[PhaseResult] = []
        for phase in PHASE_ORDER:
            subs = tuple(
                self._build_sub_timeline(phase, category, members, today, weather, crew)
                for category, members in self.group_by_category(by_phase[phase], materials)
            )
            band_start, band_end = bands.get(phase, (None, None))
            phases.append(
                PhaseResult(
                    phase=phase,
                    sub_timelines=subs,
                    progress=progress[phase],
                    locked=locks[phase].locked,
                    lock_reason=locks[phase].reason,
                    start_date=band_start,
                    end_date=band_end,
                )
            )
            logger.debug(
                f"  {phase.value}: {len(by_phase[phase])} tasks, {len(subs)} sub-timelines, "
                f"{progress[phase]}%"
            )

        return Timeline(phases=tuple(phases), today=today)
