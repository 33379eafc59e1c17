"""Settings chosen once per invocation by the command-line callback."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class CliSettings:
    """Global options shared by every command."""

    config_path: Path | None = None
    state_path: Path | None = None


_settings = CliSettings()


def configure(
    *,
    config_path: Path | None = None,
    state_path: Path | None = None,
) -> CliSettings:
    """Replace the current settings; options not given fall back to defaults."""
    global _settings
    _settings = CliSettings(config_path=config_path, state_path=state_path)
    return _settings


def settings() -> CliSettings:
    """The settings of the running invocation."""
    return _settings
