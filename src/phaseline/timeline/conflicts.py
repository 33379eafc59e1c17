"""Weather and crew-presence conflict detection.

Conflicts are advisory: they never block an action and are recomputed on
every pass.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from phaseline.logger import get_logger
from phaseline.models import (
    ConflictRecord,
    ConflictStatus,
    CrewMember,
    Phase,
    Task,
    TaskStatus,
    WeatherAlert,
)

logger = get_logger()

DANGER_SEVERITY = "danger"
NO_CREW_MESSAGE = "No team members on site"


def weather_alert_for(
    task: Task,
    forecast: Mapping[date, Sequence[WeatherAlert]] | None,
) -> WeatherAlert | None:
    """Return the first danger alert forecast for the task's due date, if any."""
    if not forecast or task.due_date is None:
        return None
    for alert in forecast.get(task.due_date, ()):
        if alert.severity == DANGER_SEVERITY:
            return alert
    return None


def crew_absent(crew: Sequence[CrewMember] | None) -> bool:
    """True when a crew list is supplied and nobody on it is on site."""
    if not crew:
        return False
    return not any(member.is_on_site for member in crew)


def _needs_crew_today(task: Task, today: date) -> bool:
    return task.status == TaskStatus.IN_PROGRESS or task.due_date == today


def detect_conflict(
    sub_timeline_id: str,
    phase: Phase,
    tasks: Sequence[Task],
    today: date,
    forecast: Mapping[date, Sequence[WeatherAlert]] | None = None,
    crew: Sequence[CrewMember] | None = None,
) -> ConflictRecord:
    """Evaluate weather and crew conflicts for one sub-timeline.

    Args:
        sub_timeline_id: Id of the sub-timeline being evaluated
        phase: Phase the sub-timeline belongs to; crew checks apply to execution only
        tasks: Tasks of the sub-timeline
        today: Current date
        forecast: Optional weather forecast by date
        crew: Optional crew presence list; an empty list disables crew checks

    Returns:
        ConflictRecord with status none/weather/gps/both
    """
    weather_message: str | None = None
    has_weather = False
    for task in tasks:
        alert = weather_alert_for(task, forecast)
        if alert is not None:
            has_weather = True
            weather_message = alert.message  # last matching task wins

    has_gps = (
        phase == Phase.EXECUTION
        and crew_absent(crew)
        and any(_needs_crew_today(t, today) for t in tasks)
    )

    if has_weather and has_gps:
        status = ConflictStatus.BOTH
    elif has_weather:
        status = ConflictStatus.WEATHER
    elif has_gps:
        status = ConflictStatus.GPS
    else:
        status = ConflictStatus.NONE

    message = weather_message
    if has_gps and message is None:
        message = NO_CREW_MESSAGE

    if status != ConflictStatus.NONE:
        logger.checks(f"  Conflict on {sub_timeline_id}: {status.value} ({message})")

    return ConflictRecord(sub_timeline_id=sub_timeline_id, status=status, message=message)
