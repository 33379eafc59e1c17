"""Session state file for project-date tracking.

Project-date propagation needs to know the project start date seen on the
previous run. The command line keeps it in a small versioned YAML file next
to the task file; library callers can hold a ProjectDateTracker instead.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, cast

import yaml

STATE_FILE_VERSION = 1
STATE_FILE_SUFFIX = ".state.yaml"


@dataclass
class SessionState:
    """State retained between evaluations of one task file."""

    version: int
    last_known_start: date | None = None
    last_known_end: date | None = None


def state_path_for(task_file: Path) -> Path:
    """Default state file location for a task file (tasks.yaml -> tasks.state.yaml)."""
    return task_file.with_name(task_file.stem + STATE_FILE_SUFFIX)


def write_state_file(path: Path, state: SessionState) -> None:
    """Write session state to disk.

    Args:
        path: Path to write the state file
        state: State to persist
    """
    output: dict[str, Any] = {
        "version": STATE_FILE_VERSION,
        "project": {
            "start_date": state.last_known_start.isoformat() if state.last_known_start else None,
            "end_date": state.last_known_end.isoformat() if state.last_known_end else None,
        },
    }

    with path.open("w") as f:
        yaml.safe_dump(output, f, default_flow_style=False, sort_keys=False)


def _parse_date(value: Any, field_name: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ValueError(f"Invalid {field_name} in state file: {e}") from e


def read_state_file(path: Path) -> SessionState:
    """Load a state file.

    A missing file yields an empty state.

    Raises:
        ValueError: If the state file format is invalid or version is unsupported
    """
    if not path.exists():
        return SessionState(version=STATE_FILE_VERSION)

    with path.open() as f:
        raw_data: Any = yaml.safe_load(f)

    if not isinstance(raw_data, dict):
        raise ValueError(f"Invalid state file format: expected dict, got {type(raw_data)}")

    data = cast(dict[str, Any], raw_data)

    version = data.get("version")
    if version is None:
        raise ValueError("State file missing 'version' field")
    if not isinstance(version, int):
        raise ValueError(f"State file version must be int, got {type(version)}")
    if version != STATE_FILE_VERSION:
        raise ValueError(f"Unsupported state file version {version}, expected {STATE_FILE_VERSION}")

    raw_project = data.get("project") or {}
    if not isinstance(raw_project, dict):
        raise ValueError("State file 'project' field must be a dict")
    project = cast(dict[str, Any], raw_project)

    return SessionState(
        version=version,
        last_known_start=_parse_date(project.get("start_date"), "start_date"),
        last_known_end=_parse_date(project.get("end_date"), "end_date"),
    )
