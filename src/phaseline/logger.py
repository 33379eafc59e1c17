"""Verbosity-levelled logging for phaseline.

Every engine reports through the shared "phaseline" logger:

- proposals(): verbosity 1, shift batches, bulk status changes, applied updates
- checks(): verbosity 2, per-task classification, lock, delay and conflict checks
- debug(): verbosity 3, builder internals

Warnings (missing project dates, failed store writes) appear from verbosity 1
with a "warning:" prefix.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

PROPOSALS_LEVEL = 25  # Between INFO (20) and WARNING (30)
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20)

logging.addLevelName(PROPOSALS_LEVEL, "PROPOSALS")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

LOGGER_NAME = "phaseline"
MAX_VERBOSITY = 3

# Indexed by CLI verbosity (-v count)
_LEVEL_BY_VERBOSITY = (logging.ERROR, PROPOSALS_LEVEL, CHECKS_LEVEL, logging.DEBUG)


class PhaselineLogger(logging.Logger):
    """Logger with one method per verbosity level."""

    def proposals(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a proposal or applied change (verbosity 1)."""
        if self.isEnabledFor(PROPOSALS_LEVEL):
            self._log(PROPOSALS_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an individual check (verbosity 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


class _WarningPrefixFormatter(logging.Formatter):
    """Bare messages, except warnings and errors which name their level."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.lower()}: {message}"
        return message


def get_logger() -> PhaselineLogger:
    """Get the shared phaseline logger.

    Safe to call at import time; setup_logger() configures output later.
    """
    logging.setLoggerClass(PhaselineLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, PhaselineLogger)
    return logger


def level_for_verbosity(verbosity: int) -> int:
    """Logging level for a verbosity count; out-of-range values are clamped."""
    return _LEVEL_BY_VERBOSITY[max(0, min(verbosity, MAX_VERBOSITY))]


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """(Re)configure the logger.

    Args:
        verbosity: 0=errors only, 1=proposals, 2=checks, 3=debug
        stream: Output stream, stderr by default
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(level_for_verbosity(verbosity))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(_WarningPrefixFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to errors-only; used between tests."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def proposals_enabled() -> bool:
    return get_logger().isEnabledFor(PROPOSALS_LEVEL)


def checks_enabled() -> bool:
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    return get_logger().isEnabledFor(logging.DEBUG)
