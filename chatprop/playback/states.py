"""
Playback session states.

    IDLE ──start──▶ RUNNING ──▶ DELIVERING_AUTONOMOUS ──▶ RUNNING ──▶ ...
                       │                                     │
                       └──▶ AWAITING_ACTOR_INPUT ──submit──▶─┘
                                                             │
                                                         COMPLETE

Any state returns to IDLE on reset/cancel; any non-terminal state can
move to CANCELLED when scheduling fails.
"""

from __future__ import annotations

from enum import Enum

from chatprop.errors import InvalidTransitionError


class SessionState(Enum):
    """Playback session lifecycle states."""

    IDLE = "idle"
    """No timeline loaded."""

    RUNNING = "running"
    """Between lines: waiting for the start delay or an inter-line gap."""

    DELIVERING_AUTONOMOUS = "delivering_autonomous"
    """An autonomous line's pre-delay or typing window is in progress."""

    AWAITING_ACTOR_INPUT = "awaiting_actor_input"
    """Forced typing is active for an actor line."""

    COMPLETE = "complete"
    """Every line has been delivered."""

    CANCELLED = "cancelled"
    """Stopped by a scheduling failure."""

    @property
    def is_active(self) -> bool:
        """Whether timers may legitimately fire in this state."""
        return self in ACTIVE_STATES


ACTIVE_STATES = frozenset({
    SessionState.RUNNING,
    SessionState.DELIVERING_AUTONOMOUS,
    SessionState.AWAITING_ACTOR_INPUT,
})


# Valid state transitions (from -> to). IDLE is reachable from everywhere.
VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.IDLE: {SessionState.RUNNING},
    SessionState.RUNNING: {
        SessionState.DELIVERING_AUTONOMOUS,
        SessionState.AWAITING_ACTOR_INPUT,
        SessionState.COMPLETE,
        SessionState.CANCELLED,
    },
    SessionState.DELIVERING_AUTONOMOUS: {SessionState.RUNNING, SessionState.CANCELLED},
    SessionState.AWAITING_ACTOR_INPUT: {SessionState.RUNNING, SessionState.CANCELLED},
    SessionState.COMPLETE: set(),
    SessionState.CANCELLED: set(),
}


def is_valid_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Check if a state transition is valid."""
    if to_state is SessionState.IDLE:
        return True
    return to_state in VALID_TRANSITIONS.get(from_state, set())


def check_transition(from_state: SessionState, to_state: SessionState) -> None:
    """Raise InvalidTransitionError unless the transition is valid."""
    if not is_valid_transition(from_state, to_state):
        raise InvalidTransitionError(from_state.value, to_state.value)
