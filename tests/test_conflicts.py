"""Tests for weather and crew-presence conflicts."""

from datetime import date

from phaseline.models import ConflictStatus, CrewMember, Phase, WeatherAlert
from phaseline.timeline import TimelineBuilder, detect_conflict, weather_alert_for
from phaseline.timeline.conflicts import NO_CREW_MESSAGE, crew_absent
from tests.conftest import TODAY, make_task

STORM_DAY = date(2024, 6, 15)
FORECAST = {
    STORM_DAY: [
        WeatherAlert(severity="info", message="Breezy"),
        WeatherAlert(severity="danger", message="Severe thunderstorm"),
    ],
    date(2024, 6, 16): [WeatherAlert(severity="warning", message="Heavy rain")],
}
OFF_SITE = [CrewMember(member_id="alice", is_on_site=False), CrewMember("bob", False)]


class TestWeatherConflicts:
    """Test danger alerts on task due dates."""

    def test_danger_alert_on_due_date(self) -> None:
        """Test scenario: a danger alert on the due date flags a weather conflict."""
        tasks = [make_task("t1", "Install tile", due=STORM_DAY)]
        record = detect_conflict("execution-flooring", Phase.EXECUTION, tasks, TODAY, FORECAST)
        assert record.status == ConflictStatus.WEATHER
        assert record.message == "Severe thunderstorm"
        assert record.has_conflict

    def test_non_danger_alert_ignored(self) -> None:
        """Test that lower severities are not conflicts."""
        tasks = [make_task("t1", "Install tile", due=date(2024, 6, 16))]
        record = detect_conflict("s", Phase.EXECUTION, tasks, TODAY, FORECAST)
        assert record.status == ConflictStatus.NONE
        assert record.message is None

    def test_undated_task_has_no_weather(self) -> None:
        """Test that undated tasks are never checked against the forecast."""
        assert weather_alert_for(make_task("t1", "x"), FORECAST) is None

    def test_last_matching_message_wins(self) -> None:
        """Test the message when several tasks hit danger days."""
        forecast = {
            date(2024, 6, 14): [WeatherAlert("danger", "High winds")],
            STORM_DAY: [WeatherAlert("danger", "Severe thunderstorm")],
        }
        tasks = [
            make_task("t1", "x", due=STORM_DAY),
            make_task("t2", "x", due=date(2024, 6, 14)),
        ]
        record = detect_conflict("s", Phase.PREPARATION, tasks, TODAY, forecast)
        assert record.message == "High winds"

    def test_weather_applies_to_every_phase(self) -> None:
        """Test that weather is checked outside execution too."""
        tasks = [make_task("t1", "Final walkthrough", due=STORM_DAY)]
        record = detect_conflict("s", Phase.VERIFICATION, tasks, TODAY, FORECAST)
        assert record.status == ConflictStatus.WEATHER


class TestCrewConflicts:
    """Test crew absence during execution."""

    def test_nobody_on_site_with_active_task(self) -> None:
        """Test a gps conflict for an in-progress task with everyone off site."""
        tasks = [make_task("t1", "Install tile", status="in_progress", due=date(2024, 6, 20))]
        record = detect_conflict("s", Phase.EXECUTION, tasks, TODAY, crew=OFF_SITE)
        assert record.status == ConflictStatus.GPS
        assert record.message == NO_CREW_MESSAGE

    def test_task_due_today(self) -> None:
        """Test that a pending task due today needs the crew."""
        tasks = [make_task("t1", "Install tile", due=TODAY)]
        record = detect_conflict("s", Phase.EXECUTION, tasks, TODAY, crew=OFF_SITE)
        assert record.status == ConflictStatus.GPS

    def test_someone_on_site(self) -> None:
        """Test that one crew member on site clears the conflict."""
        crew = [*OFF_SITE, CrewMember(member_id="carol", is_on_site=True)]
        tasks = [make_task("t1", "Install tile", due=TODAY)]
        record = detect_conflict("s", Phase.EXECUTION, tasks, TODAY, crew=crew)
        assert record.status == ConflictStatus.NONE

    def test_empty_crew_list_disables_check(self) -> None:
        """Test that no crew data means no gps conflict."""
        tasks = [make_task("t1", "Install tile", due=TODAY)]
        assert not crew_absent([])
        assert detect_conflict("s", Phase.EXECUTION, tasks, TODAY, crew=[]).status == (
            ConflictStatus.NONE
        )

    def test_only_execution_phase(self) -> None:
        """Test that preparation work does not need the crew on site."""
        tasks = [make_task("t1", "Order tile", due=TODAY)]
        record = detect_conflict("s", Phase.PREPARATION, tasks, TODAY, crew=OFF_SITE)
        assert record.status == ConflictStatus.NONE

    def test_future_pending_task(self) -> None:
        """Test that a task due later needs nobody today."""
        tasks = [make_task("t1", "Install tile", due=date(2024, 6, 20))]
        record = detect_conflict("s", Phase.EXECUTION, tasks, TODAY, crew=OFF_SITE)
        assert record.status == ConflictStatus.NONE


class TestCombinedConflicts:
    """Test weather and crew together."""

    def test_both(self) -> None:
        """Test that simultaneous conditions report both with the weather message."""
        tasks = [make_task("t1", "Install tile", due=STORM_DAY)]
        record = detect_conflict("s", Phase.EXECUTION, tasks, STORM_DAY, FORECAST, OFF_SITE)
        assert record.status == ConflictStatus.BOTH
        assert record.message == "Severe thunderstorm"

    def test_builder_attaches_conflicts(self) -> None:
        """Test that each sub-timeline carries its own conflict record."""
        tasks = [
            make_task("t1", "Install tile", due=STORM_DAY),
            make_task("t2", "Install baseboard", due=date(2024, 6, 20)),
        ]
        timeline = TimelineBuilder().build(tasks, TODAY, weather=FORECAST, crew=OFF_SITE)
        flooring = timeline.get_phase(Phase.EXECUTION).get_sub_timeline("flooring")
        trim = timeline.get_phase(Phase.EXECUTION).get_sub_timeline("trim")
        assert flooring is not None and trim is not None
        assert flooring.conflict.sub_timeline_id == "execution-flooring"
        assert flooring.conflict.status == ConflictStatus.WEATHER
        assert trim.conflict.status == ConflictStatus.NONE
