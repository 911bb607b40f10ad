"""
Take logging for ChatProp.

The engine modules log through the standard ``chatprop`` logger. This
module adds a take log on top: one structured record per playback
event, written as JSON lines (or a compact text form for a terminal
on set) so a take can be reconstructed after filming.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from chatprop.playback.events import PlaybackEvent, Subscription
    from chatprop.playback.session import PlaybackSession


class LogLevel(Enum):
    """Take log levels, mirroring the stdlib ones."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def numeric(self) -> int:
        return logging.getLevelName(self.name)


@dataclass
class LogRecord:
    """One take log entry.

    Attributes:
        level: Level name.
        event: Record name, e.g. ``line_delivered``.
        message: Human-readable summary.
        timestamp: Wall-clock time of the entry.
        data: Extra fields, flattened into the JSON object.
    """

    level: str
    event: str
    message: str = ""
    timestamp: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)
    logger_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d.update(d.pop("data", {}))
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_text(self) -> str:
        clock = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        text = f"{clock} {self.level.upper():<7} {self.event}"
        if self.message:
            text += f"  {self.message}"
        if self.data:
            text += "  " + " ".join(f"{k}={v}" for k, v in self.data.items())
        return text


# Playback event kind -> (level, record name)
_EVENT_RECORDS: dict[str, tuple[LogLevel, str]] = {
    "typing-started": (LogLevel.DEBUG, "typing_started"),
    "typing-stopped": (LogLevel.DEBUG, "typing_stopped"),
    "line-delivered": (LogLevel.INFO, "line_delivered"),
    "awaiting-actor-input": (LogLevel.INFO, "awaiting_actor_input"),
    "session-complete": (LogLevel.INFO, "session_complete"),
    "session-reset": (LogLevel.INFO, "session_reset"),
}


def _describe(event: "PlaybackEvent") -> tuple[str, dict[str, Any]]:
    kind = event.kind.value
    fields: dict[str, Any] = {}
    if event.line_index is not None:
        fields["line_index"] = event.line_index
    if event.line_id is not None:
        fields["line_id"] = event.line_id
    if event.speaker_id is not None:
        fields["speaker_id"] = event.speaker_id

    text = event.text or ""
    if kind == "line-delivered":
        fields["text_length"] = len(text)
        fields["delivered_at"] = event.delivered_at
        return f"{event.speaker_id}: {text}", fields
    if kind == "awaiting-actor-input":
        fields["text_length"] = len(text)
        return f"Waiting for the actor to type {len(text)} characters", fields
    if kind == "session-complete":
        return "All lines delivered", fields
    if kind == "session-reset":
        return "Playback reset", fields
    fields["timestamp_ms"] = event.timestamp_ms
    return "", fields


class StructuredLogger:
    """Take log writer.

    Example:
        take_log = StructuredLogger().bind(scene=4, take=2)
        attach_session_logger(session, take_log)

        take_log.log(LogLevel.INFO, "take_started", "Scene 4, take 2")
        # {"level": "info", "event": "take_started", "scene": 4, "take": 2, ...}
    """

    def __init__(
        self,
        name: str = "chatprop",
        level: LogLevel = LogLevel.INFO,
        output: TextIO | None = None,
        json_format: bool = True,
        context: dict[str, Any] | None = None,
    ):
        """Initialize the take log.

        Args:
            name: Name stamped on every record.
            level: Minimum level written.
            output: Output stream (default: stderr).
            json_format: JSON lines, or the compact text form.
            context: Fields added to every record.
        """
        self.name = name
        self.level = level
        self.output = output or sys.stderr
        self.json_format = json_format
        self.context = dict(context or {})
        self._lock = threading.Lock()

    def bind(self, **context: Any) -> "StructuredLogger":
        """A logger writing to the same stream with extra fields."""
        return StructuredLogger(
            name=self.name,
            level=self.level,
            output=self.output,
            json_format=self.json_format,
            context={**self.context, **context},
        )

    def log(self, level: LogLevel, event: str, message: str = "", **data: Any) -> None:
        """Write one record if ``level`` passes the filter."""
        if level.numeric < self.level.numeric:
            return
        record = LogRecord(
            level=level.value,
            event=event,
            message=message,
            data={**self.context, **data},
            logger_name=self.name,
        )
        line = record.to_json() if self.json_format else record.to_text()
        with self._lock:
            self.output.write(line + "\n")

    def record_event(self, event: "PlaybackEvent") -> None:
        """Write the record for a playback event."""
        level, name = _EVENT_RECORDS[event.kind.value]
        message, fields = _describe(event)
        self.log(level, name, message, **fields)


def attach_session_logger(
    session: "PlaybackSession",
    logger: StructuredLogger | None = None,
) -> "Subscription":
    """Subscribe a take log to a session's events.

    Args:
        session: Session to observe.
        logger: Take log to write to (global one when omitted).

    Returns:
        Subscription; unsubscribe to stop logging.
    """
    bound = (logger or get_logger()).bind(session_id=session.session_id)
    return session.subscribe(bound.record_event)


_global_logger: StructuredLogger | None = None


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    output: TextIO | None = None,
    json_format: bool = True,
) -> StructuredLogger:
    """Configure the global take log and the stdlib ``chatprop`` logger.

    Raises:
        ValueError: Unknown level name.
    """
    global _global_logger

    if isinstance(level, str):
        level = LogLevel(level)

    logging.getLogger("chatprop").setLevel(level.numeric)
    _global_logger = StructuredLogger(level=level, output=output, json_format=json_format)
    return _global_logger


def get_logger() -> StructuredLogger:
    """Get the global take log, creating a default one on first use."""
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger()
    return _global_logger
