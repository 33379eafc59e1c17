"""Custom exceptions for Phaseline."""


class PhaselineError(Exception):
    """Base exception for all Phaseline errors."""

    pass


class ValidationError(PhaselineError):
    """Raised when validation fails."""

    pass


class ParseError(PhaselineError):
    """Raised when YAML parsing fails."""

    pass


class PhaseLockedError(PhaselineError):
    """Raised when an action targets a phase whose predecessor is incomplete."""

    def __init__(self, phase: str, reason: str):
        super().__init__(f"Phase '{phase}' is locked: {reason}")
        self.phase = phase
        self.reason = reason


class BatchStateError(PhaselineError):
    """Raised when a shift batch is used in the wrong state (e.g. applied before confirmation)."""

    pass


class StoreError(PhaselineError):
    """Raised by a task store when a single update cannot be persisted."""

    pass
