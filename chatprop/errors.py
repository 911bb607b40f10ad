"""
ChatProp Errors - Engine error types.

Error hierarchy:
    ChatPropError (base)
    ├── ValidationError
    │   ├── EmptyScriptError
    │   ├── UnknownSpeakerError
    │   ├── DuplicateLineIdError
    │   ├── DuplicateParticipantError
    │   └── MultipleActorsError
    ├── InputAlreadyActiveError
    ├── NoTimelineError
    ├── InvalidTransitionError
    └── SchedulingError

Absorbing no-ops during forced typing (erase at zero, printable at full
length, premature submit) are NOT errors and never raise.
"""

from __future__ import annotations

from typing import Any


class ChatPropError(Exception):
    """Base error for all engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ChatPropError):
    """
    Raised when a script cannot be normalized into a timeline.

    Validation errors are fatal to ``start()``: the session never
    leaves ``IDLE``.
    """


class EmptyScriptError(ValidationError):
    """Raised when the script contains no lines."""

    def __init__(self, message: str = "Script contains no lines"):
        super().__init__(message)


class UnknownSpeakerError(ValidationError):
    """Raised when a line references a participant missing from the roster."""

    def __init__(
        self,
        speaker_id: str,
        line_index: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        where = f" (line {line_index})" if line_index is not None else ""
        super().__init__(f"Unknown speaker: {speaker_id!r}{where}", details)
        self.speaker_id = speaker_id
        self.line_index = line_index


class DuplicateLineIdError(ValidationError):
    """Raised when two lines share the same explicit id."""

    def __init__(self, line_id: str):
        super().__init__(f"Duplicate line id: {line_id!r}")
        self.line_id = line_id


class DuplicateParticipantError(ValidationError):
    """Raised when two participants share the same id."""

    def __init__(self, participant_id: str):
        super().__init__(f"Duplicate participant id: {participant_id!r}")
        self.participant_id = participant_id


class MultipleActorsError(ValidationError):
    """Raised when more than one participant is flagged as the actor."""

    def __init__(self, actor_ids: list[str]):
        super().__init__(
            f"Only one participant may be the actor, got {len(actor_ids)}: "
            f"{', '.join(actor_ids)}",
            details={"actor_ids": list(actor_ids)},
        )
        self.actor_ids = list(actor_ids)


class InputAlreadyActiveError(ChatPropError):
    """
    Raised when forced typing is begun while another line is still pending.

    This is host misuse (re-entrant ``begin()``) and is surfaced rather
    than recovered.
    """

    def __init__(self, pending_text: str | None = None):
        super().__init__(
            "Forced input is already active for another line",
            details={"pending_length": len(pending_text or "")},
        )
        self.pending_text = pending_text


class NoTimelineError(ChatPropError):
    """Raised when an operation needs a loaded timeline and none is loaded."""

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation}: no timeline is loaded")
        self.operation = operation


class InvalidTransitionError(ChatPropError):
    """
    Raised for invalid session state transitions.

    Examples:
    - IDLE → AWAITING_ACTOR_INPUT (must start first)
    - COMPLETE → DELIVERING_AUTONOMOUS (must restart)
    """

    def __init__(
        self,
        from_state: str,
        to_state: str,
        message: str | None = None,
    ):
        msg = message or f"Invalid transition: {from_state} → {to_state}"
        super().__init__(msg)
        self.from_state = from_state
        self.to_state = to_state


class SchedulingError(ChatPropError):
    """
    Raised when a timer could not be scheduled.

    Fatal to the current session: it moves to ``CANCELLED`` and emits
    ``session-reset``. The engine never retries.
    """

    def __init__(
        self,
        message: str,
        delay_ms: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(f"Scheduling failed: {message}", details)
        self.delay_ms = delay_ms
