"""
Delivery scheduler - walks a timeline one line at a time.

Autonomous lines advance through pending → typing → delivered on two
timers computed by the DelayModel. Actor lines hand control to the
ForcedInputCapture and wait, with no timer, until the actor submits.

Invariants enforced:
    1. Strictly sequential: line n+1 is evaluated only after line n
       is delivered
    2. typing-started precedes line-delivered for the same line, even
       when both timers are due at the same instant
    3. Every timer is tracked and tagged with the epoch current when it
       was scheduled; a reset bumps the epoch, so a stale timer that
       fires anyway discards itself
    4. No event is emitted for an epoch once it has been left, even if
       a listener resets the session in the middle of a step
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from chatprop.errors import SchedulingError
from chatprop.monitoring.metrics import PlaybackDiagnostics
from chatprop.playback.config import PlaybackConfig
from chatprop.playback.delay import DelayModel
from chatprop.playback.events import EventKind, PlaybackEvent
from chatprop.playback.forced_input import ForcedInputCapture
from chatprop.playback.states import SessionState, check_transition
from chatprop.playback.timers import TimerHandle, TimerService
from chatprop.script.line import ScriptLine
from chatprop.script.timeline import ScriptTimeline

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ScheduledTask:
    """Bookkeeping for one outstanding timer."""

    epoch: int
    label: str
    line_index: int | None = None


class DeliveryScheduler:
    """Timer-driven walk over a ScriptTimeline.

    Owned by a PlaybackSession; nothing else touches its cursor. All
    entry points, including timer callbacks, run under ``lock``.

    Example:
        scheduler = DeliveryScheduler(timers, emit=stream.emit)
        scheduler.run(timeline)
    """

    def __init__(
        self,
        timers: TimerService,
        emit: Callable[[PlaybackEvent], None],
        config: PlaybackConfig | None = None,
        delay_model: DelayModel | None = None,
        diagnostics: PlaybackDiagnostics | None = None,
        lock: threading.RLock | None = None,
    ):
        """
        Initialize scheduler.

        Args:
            timers: Timer service for every wait
            emit: Sink for playback events
            config: Pacing configuration
            delay_model: Delay model (built from config when omitted)
            diagnostics: Shared counters
            lock: Lock serializing all scheduler logic
        """
        self.config = config or PlaybackConfig()
        self.timers = timers
        self.delay_model = delay_model or DelayModel(self.config)
        self.diagnostics = diagnostics or PlaybackDiagnostics()
        self.capture = ForcedInputCapture(
            on_complete=self._on_actor_complete,
            diagnostics=self.diagnostics,
        )
        self._emit_sink = emit
        self._lock = lock or threading.RLock()

        self.state = SessionState.IDLE
        self.timeline: ScriptTimeline | None = None
        self.cursor = 0
        self._delivered: list[ScriptLine] = []

        self._epoch = 0
        self._tasks: dict[ScheduledTask, TimerHandle] = {}
        self._typing_index: int | None = None
        self._sequence = itertools.count()

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def delivered_lines(self) -> tuple[ScriptLine, ...]:
        return tuple(self._delivered)

    @property
    def pending_timer_count(self) -> int:
        return len(self._tasks)

    @property
    def current_line(self) -> ScriptLine | None:
        """Line at the cursor, if any."""
        if self.timeline is None or self.cursor >= len(self.timeline):
            return None
        return self.timeline[self.cursor]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def run(self, timeline: ScriptTimeline) -> None:
        """
        Begin walking a timeline from index 0.

        The scheduler must be IDLE (call ``reset()`` first).

        Raises:
            SchedulingError: A timer could not be scheduled; the
                scheduler is already CANCELLED when this propagates
        """
        with self._lock:
            self.timeline = timeline
            self.cursor = 0
            self._delivered = []
            self._typing_index = None
            self.delay_model.reseed()
            self._set_state(SessionState.RUNNING)

            logger.debug("Running timeline of %d lines (epoch %d)", len(timeline), self._epoch)
            if self.config.start_delay_ms > 0:
                self._schedule(self.config.start_delay_ms, self._evaluate, "start-delay")
            else:
                self._evaluate()

    def reset(self, keep_timeline: bool = True) -> SessionState:
        """
        Cancel everything outstanding and return to IDLE.

        Args:
            keep_timeline: Keep the snapshot loaded for a restart

        Returns:
            The state the scheduler was in before the reset
        """
        with self._lock:
            previous = self.state
            self._epoch += 1
            self._cancel_tasks()
            self.capture.cancel()
            self.cursor = 0
            self._delivered = []
            self._typing_index = None
            self.state = SessionState.IDLE
            if not keep_timeline:
                self.timeline = None
            return previous

    def emit_reset(self) -> None:
        """Emit ``session-reset`` for the current epoch."""
        with self._lock:
            self._emit(EventKind.SESSION_RESET)

    def fail(self, error: Exception) -> None:
        """Stop the session after a scheduling failure.

        The snapshot is kept so the host may ``restart()``; the engine
        itself never retries.
        """
        with self._lock:
            if not self.state.is_active:
                return
            logger.error("Playback cancelled after scheduling failure: %s", error)
            self._epoch += 1
            self._cancel_tasks()
            self.capture.cancel()
            self._typing_index = None
            self._set_state(SessionState.CANCELLED)
            self.diagnostics.record_reset("scheduling_error")
            self._emit(EventKind.SESSION_RESET)

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def _cancel_tasks(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for handle in tasks:
            handle.cancel()

    def _schedule(
        self,
        delay_ms: float,
        action: Callable[[], Any],
        label: str,
        line_index: int | None = None,
    ) -> None:
        task = ScheduledTask(self._epoch, label, line_index)

        def fire() -> None:
            with self._lock:
                self._tasks.pop(task, None)
                if task.epoch != self._epoch or not self.state.is_active:
                    self.diagnostics.record_stale_timer()
                    logger.debug("Discarded stale %s timer (epoch %d)", task.label, task.epoch)
                    return
                try:
                    action()
                except SchedulingError:
                    # Already handled by fail(); nothing above a timer can react.
                    logger.debug("Timer %s stopped by scheduling failure", task.label)

        try:
            handle = self.timers.call_later(delay_ms, fire)
        except SchedulingError as e:
            self.fail(e)
            raise
        self._tasks[task] = handle
        logger.debug("Scheduled %s in %.1fms (line %s)", label, delay_ms, line_index)

    # -------------------------------------------------------------------------
    # Line evaluation
    # -------------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        check_transition(self.state, state)
        self.state = state

    def _emit(self, kind: EventKind, **fields: Any) -> bool:
        """Emit an event; return False if a listener moved to a new epoch."""
        epoch = self._epoch
        event = PlaybackEvent(
            kind=kind,
            timestamp_ms=self.timers.now_ms(),
            sequence=next(self._sequence),
            **fields,
        )
        self._emit_sink(event)
        return epoch == self._epoch

    def _evaluate(self) -> None:
        timeline = self.timeline
        if timeline is None:
            return

        if self.cursor >= len(timeline):
            self._set_state(SessionState.COMPLETE)
            logger.info("Playback complete: %d lines delivered", len(self._delivered))
            self._emit(EventKind.SESSION_COMPLETE)
            return

        index = self.cursor
        line = timeline[index]

        if timeline.is_actor_line(index):
            self._set_state(SessionState.AWAITING_ACTOR_INPUT)
            self.capture.begin(line.text)
            self._emit(
                EventKind.AWAITING_ACTOR_INPUT,
                speaker_id=line.speaker_id,
                line=line,
                line_index=index,
            )
            return

        timing = self.delay_model.compute_timing(line)
        self._set_state(SessionState.DELIVERING_AUTONOMOUS)
        self._typing_index = None
        self._schedule(
            timing.pre_delay_ms,
            lambda: self._on_typing_timer(index),
            "typing-started",
            index,
        )
        self._schedule(
            timing.total_ms,
            lambda: self._deliver_autonomous(index),
            "line-delivered",
            index,
        )

    def _on_typing_timer(self, index: int) -> None:
        # The delivery timer may already have shown typing for this line.
        if index != self.cursor or self.state is not SessionState.DELIVERING_AUTONOMOUS:
            self.diagnostics.record_stale_timer()
            return
        self._typing_started(index)

    def _typing_started(self, index: int) -> bool:
        if self._typing_index == index:
            return True
        self._typing_index = index
        line = self.timeline[index]
        return self._emit(EventKind.TYPING_STARTED, speaker_id=line.speaker_id, line_index=index)

    def _deliver_autonomous(self, index: int) -> None:
        if index != self.cursor:
            return
        if not self._typing_started(index):
            return
        line = self.timeline[index]
        if not self._emit(EventKind.TYPING_STOPPED, speaker_id=line.speaker_id, line_index=index):
            return
        self._typing_index = None
        self._set_state(SessionState.RUNNING)
        self._commit(index, owner="autonomous")

    def _on_actor_complete(self, text: str) -> None:
        with self._lock:
            if self.state is not SessionState.AWAITING_ACTOR_INPUT:
                logger.warning("Forced input completed outside of an actor line; ignored")
                return
            index = self.cursor
            self._set_state(SessionState.RUNNING)
            self._commit(index, owner="actor")

    def _commit(self, index: int, owner: str) -> None:
        line = self.timeline[index]
        self._delivered.append(line)
        self.cursor = index + 1
        self.diagnostics.record_delivery(owner)

        delivered_at = self.timers.now_ms()
        if not self._emit(
            EventKind.LINE_DELIVERED,
            speaker_id=line.speaker_id,
            line=line,
            line_index=index,
            delivered_at=delivered_at,
        ):
            return

        gap = self.config.inter_line_gap_ms
        if gap > 0 and self.cursor < len(self.timeline):
            self._schedule(gap, self._evaluate, "inter-line-gap")
        else:
            self._evaluate()
