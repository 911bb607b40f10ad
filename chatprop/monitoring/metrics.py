"""
Diagnostic counters for ChatProp playback.
"""

from __future__ import annotations

import threading
from typing import Any, Iterator


class Counter:
    """Counter metric (monotonically increasing).

    Example:
        resets = Counter("sessions_reset_total", "Sessions reset")
        resets.inc()
        resets.inc(reason="restart")
    """

    def __init__(
        self,
        name: str,
        description: str = "",
    ):
        self.name = name
        self.description = description
        self._values: dict[tuple, float] = {}
        self._lock = threading.Lock()

    def inc(self, value: float = 1, **labels: str) -> None:
        """Increment the counter.

        Args:
            value: Amount to increment by.
            **labels: Label values.
        """
        key = tuple(sorted(labels.items()))
        with self._lock:
            self._values[key] = self._values.get(key, 0) + value

    def get(self, **labels: str) -> float:
        """Get current counter value for an exact label set."""
        key = tuple(sorted(labels.items()))
        with self._lock:
            return self._values.get(key, 0)

    def total(self) -> float:
        """Sum across all label sets."""
        with self._lock:
            return sum(self._values.values())

    def values(self) -> Iterator[tuple[dict[str, str], float]]:
        """Iterate over all values with labels."""
        with self._lock:
            items = list(self._values.items())
        for key, value in items:
            yield dict(key), value


class PlaybackDiagnostics:
    """Counters a host can log while a scene is being performed.

    Absorbed forced-typing no-ops are not errors, so they only show up
    here. One instance is shared by a session and its input capture.

    Example:
        diagnostics = session.diagnostics
        print(diagnostics.snapshot())
        # {"noop_signals": {"erase_at_zero": 3}, "stale_timers": 0, ...}
    """

    def __init__(self):
        self.noop_signals = Counter(
            "chatprop_noop_signals_total",
            "Key signals absorbed without changing forced-typing state",
        )
        self.signals = Counter(
            "chatprop_signals_total",
            "Key signals received, by kind",
        )
        self.stale_timers = Counter(
            "chatprop_stale_timers_total",
            "Timer callbacks discarded by the epoch guard",
        )
        self.lines_delivered = Counter(
            "chatprop_lines_delivered_total",
            "Lines delivered, by owner",
        )
        self.sessions_reset = Counter(
            "chatprop_sessions_reset_total",
            "Sessions reset, by reason",
        )

    def record_noop(self, reason: str) -> None:
        self.noop_signals.inc(reason=reason)

    def record_signal(self, kind: str) -> None:
        self.signals.inc(kind=kind)

    def record_stale_timer(self) -> None:
        self.stale_timers.inc()

    def record_delivery(self, owner: str) -> None:
        self.lines_delivered.inc(owner=owner)

    def record_reset(self, reason: str) -> None:
        self.sessions_reset.inc(reason=reason)

    def noop_count(self, reason: str | None = None) -> int:
        """Absorbed signals for one reason, or all of them."""
        if reason is None:
            return int(self.noop_signals.total())
        return int(self.noop_signals.get(reason=reason))

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict view for host logging."""

        def by_label(counter: Counter, label: str) -> dict[str, int]:
            return {
                labels.get(label, ""): int(value)
                for labels, value in counter.values()
            }

        return {
            "noop_signals": by_label(self.noop_signals, "reason"),
            "signals": by_label(self.signals, "kind"),
            "stale_timers": int(self.stale_timers.total()),
            "lines_delivered": by_label(self.lines_delivered, "owner"),
            "sessions_reset": by_label(self.sessions_reset, "reason"),
        }
