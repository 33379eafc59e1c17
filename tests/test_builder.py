"""Tests for assembling tasks into phases and sub-timelines."""

from datetime import date

from phaseline.config import CategoriesConfig, CategoryDefinition, PhaselineConfig
from phaseline.models import PHASE_ORDER, Material, Phase, ProjectDates, TaskStatus
from phaseline.timeline import TimelineBuilder, compute_progress
from phaseline.timeline.core import GENERAL_CATEGORY, date_span
from tests.conftest import TODAY, make_task

TASKS = [
    make_task("t1", "Order tile", status="completed", due=date(2024, 6, 5)),
    make_task("t2", "Measure hallway", due=date(2024, 6, 3)),
    make_task("t4", "Install baseboard", due=date(2024, 6, 20)),
    make_task("t3", "Install underlayment", due=date(2024, 6, 10)),
    make_task("t5", "Lay tile in kitchen", due=date(2024, 6, 14)),
    make_task("t6", "Haul away debris"),
    make_task("t7", "Final walkthrough", due=date(2024, 6, 28)),
]


class TestComputeProgress:
    """Test progress rounding."""

    def test_empty_group_is_zero(self) -> None:
        """Test that an empty group has 0% progress."""
        assert compute_progress([]) == 0

    def test_rounds_half_up(self) -> None:
        """Test rounding of fractional percentages."""
        done = make_task("a", "x", status="completed")
        todo = make_task("b", "x")
        assert compute_progress([done, todo, todo]) == 33
        assert compute_progress([done, done, todo]) == 67
        assert compute_progress([done] + [todo] * 7) == 13  # 12.5 rounds up
        assert compute_progress([done, done]) == 100

    def test_in_progress_is_not_completed(self) -> None:
        """Test that only completed tasks count."""
        assert compute_progress([make_task("a", "x", status="in_progress")]) == 0


class TestDateSpan:
    """Test sub-timeline date spans."""

    def test_ignores_undated_tasks(self) -> None:
        """Test that undated tasks do not affect the span."""
        tasks = [
            make_task("a", "x", due=date(2024, 6, 9)),
            make_task("b", "x"),
            make_task("c", "x", due=date(2024, 6, 2)),
        ]
        assert date_span(tasks) == (date(2024, 6, 2), date(2024, 6, 9))

    def test_no_dates(self) -> None:
        """Test that a group of undated tasks has no span."""
        assert date_span([make_task("a", "x")]) == (None, None)


class TestTimelineBuilder:
    """Test the full phase tree."""

    def test_phases_in_fixed_order(self) -> None:
        """Test that all three phases are present in order, even when empty."""
        timeline = TimelineBuilder().build([], TODAY)
        assert [p.phase for p in timeline.phases] == list(PHASE_ORDER)
        assert all(p.sub_timelines == () for p in timeline.phases)

    def test_every_task_in_exactly_one_sub_timeline(self) -> None:
        """Test that sub-timelines partition the task set."""
        timeline = TimelineBuilder().build(TASKS, TODAY)
        ids = [tid for sub in timeline.sub_timelines for tid in sub.task_ids]
        assert sorted(ids) == sorted(t.id for t in TASKS)

    def test_sub_timelines_follow_table_order_with_general_last(self) -> None:
        """Test category order within a phase regardless of task input order."""
        timeline = TimelineBuilder().build(TASKS, TODAY)
        execution = timeline.get_phase(Phase.EXECUTION)
        assert [s.category for s in execution.sub_timelines] == [
            "flooring",
            "underlayment",
            "trim",
            GENERAL_CATEGORY,
        ]
        general = execution.sub_timelines[-1]
        assert general.id == "execution-general"
        assert general.name == "General Tasks"
        assert general.task_ids == ["t6"]

    def test_empty_categories_omitted(self) -> None:
        """Test that only categories with tasks get a sub-timeline."""
        timeline = TimelineBuilder().build(TASKS, TODAY)
        preparation = timeline.get_phase(Phase.PREPARATION)
        assert [s.id for s in preparation.sub_timelines] == [
            "preparation-flooring",
            "preparation-general",
        ]

    def test_sub_timeline_dates_and_progress(self) -> None:
        """Test derived span and progress of a sub-timeline."""
        timeline = TimelineBuilder().build(TASKS, TODAY)
        flooring = timeline.get_phase(Phase.PREPARATION).get_sub_timeline("flooring")
        assert flooring is not None
        assert flooring.start_date == date(2024, 6, 5)
        assert flooring.end_date == date(2024, 6, 5)
        assert flooring.progress == 100

    def test_phase_progress(self) -> None:
        """Test phase progress over all tasks in the phase."""
        timeline = TimelineBuilder().build(TASKS, TODAY)
        assert timeline.get_phase(Phase.PREPARATION).progress == 50
        assert timeline.get_phase(Phase.EXECUTION).progress == 0

    def test_lookup_helpers(self) -> None:
        """Test phase_of and category_of."""
        timeline = TimelineBuilder().build(TASKS, TODAY)
        assert timeline.phase_of("t7") == Phase.VERIFICATION
        assert timeline.category_of("t4") == "trim"
        assert timeline.phase_of("missing") is None

    def test_material_links_categorize_tasks(self) -> None:
        """Test that a materials list entry decides a task's category."""
        materials = [Material(item="Baseboard")]
        tasks = [make_task("a", "Paint baseboard")]
        timeline = TimelineBuilder().build(tasks, TODAY, materials=materials)
        assert timeline.category_of("a") == "trim"

    def test_custom_category_table(self) -> None:
        """Test grouping with a configured category table."""
        config = PhaselineConfig(
            categories=CategoriesConfig(
                categories=[CategoryDefinition(name="paint", keywords=["paint"])]
            )
        )
        tasks = [make_task("a", "Paint walls"), make_task("b", "Install tile")]
        timeline = TimelineBuilder(config).build(tasks, TODAY)
        assert timeline.category_of("a") == "paint"
        assert timeline.category_of("b") == GENERAL_CATEGORY

    def test_deterministic(self) -> None:
        """Test that building twice yields equal timelines."""
        builder = TimelineBuilder()
        assert builder.build(TASKS, TODAY) == builder.build(TASKS, TODAY)

    def test_shifted_task_keeps_phase_and_category(self) -> None:
        """Test that moving a due date never re-classifies a task."""
        builder = TimelineBuilder()
        before = builder.build(TASKS, TODAY)
        shifted = [t.with_due_date(date(2024, 7, 15)) if t.id == "t3" else t for t in TASKS]
        after = builder.build(shifted, TODAY)
        assert after.phase_of("t3") == before.phase_of("t3")
        assert after.category_of("t3") == before.category_of("t3")

    def test_phase_bands_from_project_dates(self) -> None:
        """Test 40/40/20 bands over a 30 day project."""
        project = ProjectDates(start_date=date(2024, 6, 1), end_date=date(2024, 7, 1))
        timeline = TimelineBuilder().build(TASKS, TODAY, project=project)
        preparation = timeline.get_phase(Phase.PREPARATION)
        execution = timeline.get_phase(Phase.EXECUTION)
        verification = timeline.get_phase(Phase.VERIFICATION)
        assert (preparation.start_date, preparation.end_date) == (
            date(2024, 6, 1),
            date(2024, 6, 13),
        )
        assert (execution.start_date, execution.end_date) == (date(2024, 6, 13), date(2024, 6, 25))
        assert (verification.start_date, verification.end_date) == (
            date(2024, 6, 25),
            date(2024, 7, 1),
        )

    def test_no_bands_without_project_dates(self) -> None:
        """Test that phases carry no band without complete project dates."""
        project = ProjectDates(start_date=date(2024, 6, 1))
        timeline = TimelineBuilder().build(TASKS, TODAY, project=project)
        assert all(p.start_date is None for p in timeline.phases)

    def test_input_tasks_not_mutated(self) -> None:
        """Test that the builder leaves its inputs untouched."""
        tasks = list(TASKS)
        TimelineBuilder().build(tasks, TODAY)
        assert tasks == TASKS
        assert tasks[0].status == TaskStatus.COMPLETED
