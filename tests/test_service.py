"""Tests for the high-level timeline service."""

from datetime import date

import pytest

from phaseline.config import DelayConfig, PhaselineConfig
from phaseline.exceptions import PhaseLockedError
from phaseline.models import BatchKind, ConflictStatus, Phase, ProjectDates
from phaseline.parser import TaskFile, load_task_file
from phaseline.timeline import ProjectDateTracker, TimelineService
from tests.conftest import EXAMPLE_TASKS, TODAY, make_task


@pytest.fixture
def task_file() -> TaskFile:
    """The shipped example project."""
    return load_task_file(EXAMPLE_TASKS)


def _service(task_file: TaskFile, **kwargs: object) -> TimelineService:
    return TimelineService(
        task_file.tasks,
        TODAY,
        materials=task_file.materials,
        weather=task_file.weather,
        crew=task_file.crew,
        project=task_file.project,
        **kwargs,  # type: ignore[arg-type]
    )


class TestEvaluate:
    """Test a full evaluation pass over the example project."""

    def test_phase_tree(self, task_file: TaskFile) -> None:
        """Test phases, categories and locks."""
        timeline = _service(task_file).timeline
        preparation = timeline.get_phase(Phase.PREPARATION)
        assert [s.id for s in preparation.sub_timelines] == [
            "preparation-flooring",
            "preparation-underlayment",
            "preparation-general",
        ]
        assert preparation.progress == 67
        assert timeline.get_phase(Phase.EXECUTION).locked
        assert timeline.category_of("t7") == "flooring"
        assert timeline.phase_of("t6") == Phase.VERIFICATION

    def test_delay_batch_and_warnings(self, task_file: TaskFile) -> None:
        """Test the pending delay batch and report warnings."""
        report = _service(task_file).evaluate()
        assert [b.kind for b in report.batches] == [BatchKind.DELAY]
        batch = report.batches[0]
        assert batch.reason == "Delayed: preparation-underlayment"
        assert {p.task_id: p.new_due_date for p in batch.proposals} == {
            "t4": date(2024, 6, 18),
            "t5": date(2024, 6, 23),
            "t6": date(2024, 7, 1),
        }
        assert "preparation-underlayment is 3 days behind schedule" in report.warnings
        assert any("execution-flooring has a weather conflict" in w for w in report.warnings)

    def test_weather_conflict(self, task_file: TaskFile) -> None:
        """Test that the storm day flags the flooring install."""
        timeline = _service(task_file).timeline
        flooring = timeline.get_phase(Phase.EXECUTION).get_sub_timeline("flooring")
        assert flooring is not None
        assert flooring.conflict.status == ConflictStatus.WEATHER

    def test_tracker_adds_project_batch(self, task_file: TaskFile) -> None:
        """Test propagation through a caller-owned tracker."""
        tracker = ProjectDateTracker(date(2024, 5, 25))
        report = _service(task_file, tracker=tracker).evaluate()
        kinds = [b.kind for b in report.batches]
        assert kinds == [BatchKind.DELAY, BatchKind.PROJECT_DATES]
        assert report.batches[1].proposals[0].shift_days == 7
        assert tracker.last_known_start == date(2024, 6, 1)

    def test_inverted_project_dates_warn(self, task_file: TaskFile) -> None:
        """Test a warning when the end precedes the start."""
        service = TimelineService(
            task_file.tasks,
            TODAY,
            project=ProjectDates(date(2024, 7, 1), date(2024, 6, 1)),
        )
        report = service.evaluate()
        assert any("before start" in w for w in report.warnings)
        assert all(p.start_date is None for p in report.phases)

    def test_dedupe_from_config(self) -> None:
        """Test that the delays section controls de-duplication."""
        tasks = [
            make_task("p1", "Order tile", due=date(2024, 6, 2)),
            make_task("e1", "Install tile", due=date(2024, 6, 9)),
            make_task("v1", "Final walkthrough", due=date(2024, 6, 28)),
        ]
        config = PhaselineConfig(delays=DelayConfig(dedupe_targets=True))
        report = TimelineService(tasks, TODAY, config=config).evaluate()
        assert report.batches[0].task_ids == ["e1", "v1"]


class TestServiceActions:
    """Test interactive actions routed through the service."""

    def test_bulk_status_change_locked(self, task_file: TaskFile) -> None:
        """Test that a locked phase is rejected."""
        with pytest.raises(PhaseLockedError):
            _service(task_file).bulk_status_change(Phase.EXECUTION)

    def test_bulk_status_change(self, task_file: TaskFile) -> None:
        """Test completing the preparation phase."""
        request = _service(task_file).bulk_status_change(Phase.PREPARATION)
        assert request is not None
        assert sorted(request.task_ids) == ["t1", "t2", "t3"]

    def test_auto_schedule(self, task_file: TaskFile) -> None:
        """Test placing the unscheduled task."""
        batch = _service(task_file).auto_schedule()
        assert batch is not None
        assert [(p.task_id, p.new_due_date) for p in batch.proposals] == [
            ("t7", date(2024, 6, 16))
        ]

    def test_reschedule_by_drag(self, task_file: TaskFile) -> None:
        """Test a drag with an explicit day width."""
        proposal = _service(task_file).reschedule_by_drag("t4", 95, 40)
        assert proposal is not None
        assert proposal.new_due_date == date(2024, 6, 17)

    def test_day_width_from_project(self, task_file: TaskFile) -> None:
        """Test the derived day width for the example project."""
        assert _service(task_file).day_width() == 30

    def test_reschedule_by_drop(self, task_file: TaskFile) -> None:
        """Test a calendar drop."""
        proposal = _service(task_file).reschedule_by_drop("t7", date(2024, 6, 20))
        assert proposal is not None
        assert proposal.day_delta is None
        assert proposal.original_due_date is None

    def test_unknown_task(self, task_file: TaskFile) -> None:
        """Test that gestures on unknown tasks raise KeyError."""
        with pytest.raises(KeyError):
            _service(task_file).reschedule_by_drop("zz", date(2024, 6, 20))
