"""
Playback events - the one-way stream from engine to presentation.

Presentation code subscribes and renders (bubbles, typing dots, a
caret). It never feeds state back except through key signals.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from chatprop.script.line import ScriptLine

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Kinds of playback events."""

    TYPING_STARTED = "typing-started"
    TYPING_STOPPED = "typing-stopped"
    LINE_DELIVERED = "line-delivered"
    AWAITING_ACTOR_INPUT = "awaiting-actor-input"
    SESSION_COMPLETE = "session-complete"
    SESSION_RESET = "session-reset"


@dataclass(frozen=True)
class PlaybackEvent:
    """A single playback event.

    Attributes:
        kind: Event kind.
        speaker_id: Participant concerned (typing and line events).
        line: Line concerned (delivery and actor-input events).
        line_index: Timeline index of ``line``.
        delivered_at: Clock time of delivery in ms (line-delivered only).
        timestamp_ms: Clock time the event was emitted.
        sequence: Emission order within the session, never reset.
    """

    kind: EventKind
    speaker_id: str | None = None
    line: ScriptLine | None = None
    line_index: int | None = None
    delivered_at: float | None = None
    timestamp_ms: float = 0.0
    sequence: int = 0

    @property
    def line_id(self) -> str | None:
        return self.line.id if self.line is not None else None

    @property
    def text(self) -> str | None:
        return self.line.text if self.line is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "timestamp_ms": self.timestamp_ms,
            "sequence": self.sequence,
        }
        if self.speaker_id is not None:
            data["speaker_id"] = self.speaker_id
        if self.line is not None:
            data["line"] = self.line.to_dict()
            data["line_index"] = self.line_index
        if self.delivered_at is not None:
            data["delivered_at"] = self.delivered_at
        return data

    def signature(self) -> tuple:
        """Event identity without timing, for comparing runs."""
        return (self.kind, self.speaker_id, self.line_id, self.line_index)


EventListener = Callable[[PlaybackEvent], None]


class Subscription:
    """Handle returned by ``EventStream.subscribe``.

    Usable as a context manager that unsubscribes on exit.
    """

    def __init__(self, stream: "EventStream", listener: EventListener):
        self._stream = stream
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._stream.is_subscribed(self.listener)

    def unsubscribe(self) -> None:
        self._stream.unsubscribe(self.listener)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()


class EventStream:
    """Subscribe/unsubscribe fan-out of PlaybackEvents.

    Listener errors are logged and never interrupt playback.

    Example:
        stream = EventStream()
        sub = stream.subscribe(lambda e: print(e.kind.value))
        ...
        sub.unsubscribe()
    """

    def __init__(self):
        self._listeners: list[EventListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: EventListener) -> Subscription:
        """
        Register a listener.

        Args:
            listener: Called with every emitted event

        Returns:
            Subscription handle
        """
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)
        return Subscription(self, listener)

    def unsubscribe(self, listener: EventListener) -> bool:
        """Remove a listener. Returns False if it was not subscribed."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return False
            return True

    def is_subscribed(self, listener: EventListener) -> bool:
        with self._lock:
            return listener in self._listeners

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, event: PlaybackEvent) -> None:
        """Deliver an event to every current listener."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Playback event listener error on %s: %s",
                    event.kind.value,
                    e,
                    exc_info=True,
                )
