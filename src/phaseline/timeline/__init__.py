"""Timeline package - phase classification, gating and rescheduling.

This package turns a flat task list into a phase/sub-timeline tree and
derives scheduling decisions from it:
- Phase classification and material categorization of tasks
- Dependency locks between consecutive phases
- Delay detection with auto-shift proposals
- Project-date propagation and phase date bands
- Weather and crew-presence conflict flags
- Pixel/day mapping for drag and drop rescheduling

Main entry points:
- TimelineService: High-level service running every engine for one pass
- TimelineBuilder: Pure tasks -> Timeline transform
- apply_batch: Apply a confirmed ShiftBatch through a TaskStore
"""

from .batch import BatchApplyReport, TaskUpdateResult, apply_batch, apply_status_change
from .builder import TimelineBuilder
from .classify import categorize_material, categorize_task, classify_phase, classify_text
from .conflicts import detect_conflict, weather_alert_for
from .core import (
    PhaseLock,
    PhaseResult,
    SubTimeline,
    Timeline,
    TimelineReport,
    compute_progress,
)
from .delays import calculate_auto_shift, delay_days, is_delayed, propose_delay_shifts
from .locks import bulk_status_change, compute_locks, ensure_unlocked
from .propagation import (
    ProjectDateTracker,
    auto_schedule,
    phase_bands,
    propagate_project_start,
)
from .protocols import TaskStore
from .reschedule import apply_reschedule, compute_day_width, map_drag, map_drop
from .service import TimelineService

__all__ = [
    # Core dataclasses
    "PhaseLock",
    "PhaseResult",
    "SubTimeline",
    "Timeline",
    "TimelineReport",
    "compute_progress",
    # Classification
    "classify_phase",
    "classify_text",
    "categorize_material",
    "categorize_task",
    # Builder and service
    "TimelineBuilder",
    "TimelineService",
    # Locks
    "compute_locks",
    "ensure_unlocked",
    "bulk_status_change",
    # Delays
    "is_delayed",
    "delay_days",
    "calculate_auto_shift",
    "propose_delay_shifts",
    # Project dates
    "ProjectDateTracker",
    "propagate_project_start",
    "phase_bands",
    "auto_schedule",
    # Conflicts
    "detect_conflict",
    "weather_alert_for",
    # Rescheduling
    "compute_day_width",
    "map_drag",
    "map_drop",
    "apply_reschedule",
    # Persistence
    "TaskStore",
    "apply_batch",
    "apply_status_change",
    "BatchApplyReport",
    "TaskUpdateResult",
]
