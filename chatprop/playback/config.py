"""
Playback configuration for ChatProp.

Defines the tunable constants of simulated human pacing.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


_CAMEL_KEYS = {
    "naturalJitterRangeMs": "natural_jitter_range_ms",
    "naturalMsPerChar": "natural_ms_per_char",
    "minNaturalTypingMs": "min_natural_typing_ms",
    "maxNaturalTypingMs": "max_natural_typing_ms",
    "manualTypingMs": "manual_typing_ms",
    "startDelayMs": "start_delay_ms",
    "interLineGapMs": "inter_line_gap_ms",
}


@dataclass(frozen=True)
class PlaybackConfig:
    """Configuration for scripted playback.

    The natural-mode constants approximate a person noticing a chat and
    typing a reply. They are tuning knobs, not contract.

    Args:
        natural_jitter_range_ms: ``(low, high)`` bounds of the random
            "noticing" delay before a natural line starts typing.
        natural_ms_per_char: Simulated typing cost per character.
        min_natural_typing_ms: Floor so short lines still show a
            believable typing indicator.
        max_natural_typing_ms: Cap so long lines don't take unbounded
            real time.
        manual_typing_ms: Typing window shown after a manual wait.
        start_delay_ms: Wait after ``start()`` before the first line
            (lock-screen wake-up).
        inter_line_gap_ms: Settle pause after each delivered line.
        seed: Seed for the natural jitter generator.

    Example:
        config = PlaybackConfig(
            natural_jitter_range_ms=(500, 900),
            max_natural_typing_ms=2500,
            start_delay_ms=3000,
        )
    """

    natural_jitter_range_ms: tuple[float, float] = (800.0, 1500.0)
    """Bounds for the simulated noticing delay."""

    natural_ms_per_char: float = 60.0
    """Typing cost per character in natural mode."""

    min_natural_typing_ms: float = 600.0
    """Floor of the natural typing window."""

    max_natural_typing_ms: float = 4000.0
    """Cap on the natural typing window."""

    manual_typing_ms: float = 0.0
    """Typing window for manual lines (0 = deliver right after the wait)."""

    start_delay_ms: float = 0.0
    """Delay before the first line is evaluated."""

    inter_line_gap_ms: float = 0.0
    """Pause between a delivery and evaluating the next line."""

    seed: int | None = None
    """Seed for deterministic jitter."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        low, high = self.natural_jitter_range_ms
        object.__setattr__(self, "natural_jitter_range_ms", (float(low), float(high)))
        if low < 0 or high < 0:
            raise ValueError("natural_jitter_range_ms bounds must be >= 0")
        if low > high:
            raise ValueError("natural_jitter_range_ms low bound must be <= high bound")
        if self.natural_ms_per_char < 0:
            raise ValueError("natural_ms_per_char must be >= 0")
        if self.min_natural_typing_ms < 0:
            raise ValueError("min_natural_typing_ms must be >= 0")
        if self.max_natural_typing_ms < self.min_natural_typing_ms:
            raise ValueError("max_natural_typing_ms must be >= min_natural_typing_ms")
        for name in ("manual_typing_ms", "start_delay_ms", "inter_line_gap_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlaybackConfig":
        """Create a config from the host's configuration surface.

        Accepts snake_case field names and their camelCase forms.
        Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value
        if "natural_jitter_range_ms" in kwargs:
            kwargs["natural_jitter_range_ms"] = tuple(kwargs["natural_jitter_range_ms"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
