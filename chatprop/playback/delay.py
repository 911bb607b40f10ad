"""
Delay model - simulated human pacing for autonomous lines.

Maps a line and its timing mode to two durations:
    pre_delay_ms       wait before the typing indicator appears
    typing_duration_ms how long the indicator shows before delivery

The model never raises. Malformed numbers (negative, NaN, infinite)
are clamped to zero; authoring-side validation belongs to the host.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from chatprop.playback.config import PlaybackConfig
from chatprop.script.line import ScriptLine, TimingMode


class RandomSource(Protocol):
    """Anything that can draw a uniform float, e.g. ``numpy.random.Generator``."""

    def uniform(self, low: float, high: float) -> float: ...


@dataclass(frozen=True)
class LineTiming:
    """Computed timing for one autonomous line."""

    pre_delay_ms: float
    typing_duration_ms: float

    @property
    def total_ms(self) -> float:
        """Time from evaluation to delivery."""
        return self.pre_delay_ms + self.typing_duration_ms


def _non_negative(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def natural_typing_ms(length: int, config: PlaybackConfig) -> float:
    """Length-scaled typing window, clamped to the configured floor and cap."""
    raw = length * config.natural_ms_per_char
    return float(np.clip(raw, config.min_natural_typing_ms, config.max_natural_typing_ms))


def compute_timing(
    line: ScriptLine,
    config: PlaybackConfig | None = None,
    rng: RandomSource | None = None,
) -> LineTiming:
    """Compute pacing for an autonomous line.

    Args:
        line: The line to pace.
        config: Pacing constants.
        rng: Source for the natural-mode jitter draw. A fresh generator
            seeded from ``config.seed`` is used when omitted.

    Returns:
        LineTiming for the line.
    """
    config = config or PlaybackConfig()

    if line.timing_mode == TimingMode.INSTANT:
        return LineTiming(0.0, 0.0)

    if line.timing_mode == TimingMode.MANUAL:
        return LineTiming(
            pre_delay_ms=_non_negative(line.manual_delay_seconds) * 1000,
            typing_duration_ms=config.manual_typing_ms,
        )

    rng = rng if rng is not None else np.random.default_rng(config.seed)
    low, high = config.natural_jitter_range_ms
    jitter = float(rng.uniform(low, high)) if high > low else low
    return LineTiming(
        pre_delay_ms=float(np.clip(_non_negative(jitter), low, high)),
        typing_duration_ms=natural_typing_ms(line.length, config),
    )


class DelayModel:
    """Stateful wrapper holding the config and one jitter generator.

    A session keeps a single DelayModel so consecutive natural lines
    draw successive values from the same seeded stream.

    Example:
        model = DelayModel(PlaybackConfig(seed=7))
        timing = model.compute_timing(line)
    """

    def __init__(
        self,
        config: PlaybackConfig | None = None,
        rng: RandomSource | None = None,
    ):
        self.config = config or PlaybackConfig()
        self._seed = self.config.seed
        self._injected = rng
        self.rng: RandomSource = rng if rng is not None else np.random.default_rng(self._seed)

    def compute_timing(self, line: ScriptLine) -> LineTiming:
        return compute_timing(line, self.config, self.rng)

    def reseed(self) -> None:
        """Rewind the jitter stream to its initial state.

        Only generators created from ``config.seed`` can be rewound; an
        injected source is left untouched.
        """
        if self._injected is None:
            self.rng = np.random.default_rng(self._seed)
