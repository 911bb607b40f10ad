"""
Script line representation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping


class TimingMode(Enum):
    """How an autonomous line is paced."""

    NATURAL = "natural"
    """Random noticing delay plus a length-scaled typing window."""

    MANUAL = "manual"
    """Fixed author-configured wait."""

    INSTANT = "instant"
    """Delivered with no wait at all."""

    @classmethod
    def parse(cls, value: "TimingMode | str | None") -> "TimingMode":
        """Parse a timing mode, accepting the host's ``custom`` alias.

        Unknown or missing values fall back to ``NATURAL``.
        """
        if isinstance(value, TimingMode):
            return value
        if not value:
            return cls.NATURAL
        value = str(value).strip().lower()
        if value == "custom":
            return cls.MANUAL
        try:
            return cls(value)
        except ValueError:
            return cls.NATURAL


@dataclass(frozen=True)
class ScriptLine:
    """A single scripted utterance.

    Attributes:
        speaker_id: Identifier of the participant saying the line.
        text: Exact literal text revealed during playback.
        timing_mode: Delay strategy (autonomous lines only).
        manual_delay_seconds: Wait used when ``timing_mode`` is manual.
        id: Opaque identifier, unique within a script. Assigned
            during normalization when left empty.

    Example:
        line = ScriptLine("alex", "are you coming tonight?")
        quick = ScriptLine("alex", "??", TimingMode.MANUAL, 0.5)
    """

    speaker_id: str
    text: str = ""
    timing_mode: TimingMode = TimingMode.NATURAL
    manual_delay_seconds: float = 0.0
    id: str = ""

    def __post_init__(self):
        if not isinstance(self.timing_mode, TimingMode):
            object.__setattr__(self, "timing_mode", TimingMode.parse(self.timing_mode))
        if self.text is None:
            object.__setattr__(self, "text", "")

    @property
    def length(self) -> int:
        return len(self.text)

    def with_id(self, line_id: str) -> "ScriptLine":
        """Create a copy with a different id."""
        return replace(self, id=line_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScriptLine":
        """Create a line from a host dictionary.

        Understands the persisted message shape (``senderId``,
        ``delayMode``/``timingMode``, ``delay``/``manualDelaySeconds``)
        as well as snake_case keys. A wait given without any mode key
        means a manual line. ``sender`` may hold a participant name;
        it is resolved against the roster during normalization.

        Args:
            data: Line dictionary.

        Returns:
            ScriptLine instance.
        """
        speaker_id = (
            data.get("speaker_id")
            or data.get("speakerId")
            or data.get("senderId")
            or data.get("sender")
            or ""
        )
        mode = (
            data.get("timing_mode")
            or data.get("timingMode")
            or data.get("delayMode")
        )
        delay = data.get("manual_delay_seconds", data.get("manualDelaySeconds"))
        if delay is None:
            delay = data.get("delay")
        if mode is None and delay is not None:
            mode = TimingMode.MANUAL
        if delay is None:
            delay = 0.0
        try:
            delay = float(delay)
        except (TypeError, ValueError):
            delay = 0.0

        line_id = data.get("id")
        return cls(
            speaker_id=str(speaker_id),
            text=str(data.get("text") or ""),
            timing_mode=TimingMode.parse(mode),
            manual_delay_seconds=delay,
            id="" if line_id is None else str(line_id),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "speaker_id": self.speaker_id,
            "text": self.text,
            "timing_mode": self.timing_mode.value,
            "manual_delay_seconds": self.manual_delay_seconds,
        }
