"""
Playback session - the engine facade.

Owns the canonical playback state and exposes lifecycle operations
plus a subscribable event stream. Presentation code subscribes and
renders; the only input it sends back is key signals.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Iterable, Mapping

from chatprop.errors import NoTimelineError, SchedulingError
from chatprop.monitoring.metrics import PlaybackDiagnostics
from chatprop.playback.config import PlaybackConfig
from chatprop.playback.delay import DelayModel, RandomSource
from chatprop.playback.delivery import DeliveryScheduler
from chatprop.playback.events import EventListener, EventStream, Subscription
from chatprop.playback.forced_input import ForcedInputCapture
from chatprop.playback.signals import KeySignal
from chatprop.playback.states import SessionState
from chatprop.playback.timers import ThreadingTimerService, TimerService
from chatprop.script.line import ScriptLine
from chatprop.script.participant import Participant
from chatprop.script.timeline import RawLine, ScriptTimeline, normalize

logger = logging.getLogger(__name__)


class PlaybackSession:
    """A live performance of one scripted conversation.

    Sessions provide:
    - Autonomous delivery with simulated typing
    - Forced typing for the actor's lines
    - Total, immediate cancellation
    - Idempotent restart of the same snapshot

    Example:
        session = PlaybackSession(timers=VirtualTimerService())
        session.subscribe(render)

        session.start(timeline)
        ...
        session.on_key_signal("j")       # reveals the next character
        session.on_key_signal("Enter")   # sends once fully revealed
        ...
        session.cancel()
    """

    def __init__(
        self,
        timers: TimerService | None = None,
        config: PlaybackConfig | None = None,
        rng: RandomSource | None = None,
        diagnostics: PlaybackDiagnostics | None = None,
        session_id: str | None = None,
    ):
        """
        Initialize session.

        Args:
            timers: Timer service (wall-clock threads by default)
            config: Pacing configuration
            rng: Injectable source for natural jitter
            diagnostics: Counters shared with the host
            session_id: Identifier used in logs
        """
        self.session_id = session_id or str(uuid.uuid4())
        self.config = config or PlaybackConfig()
        self.timers = timers or ThreadingTimerService()
        self.diagnostics = diagnostics or PlaybackDiagnostics()
        self.events = EventStream()
        self.last_error: Exception | None = None

        self._lock = threading.RLock()
        self._scheduler = DeliveryScheduler(
            timers=self.timers,
            emit=self.events.emit,
            config=self.config,
            delay_model=DelayModel(self.config, rng),
            diagnostics=self.diagnostics,
            lock=self._lock,
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._scheduler.state

    @property
    def cursor(self) -> int:
        """Index of the next line to reveal."""
        return self._scheduler.cursor

    @property
    def delivered_lines(self) -> tuple[ScriptLine, ...]:
        """Lines revealed so far, in order."""
        return self._scheduler.delivered_lines

    @property
    def timeline(self) -> ScriptTimeline | None:
        return self._scheduler.timeline

    @property
    def capture(self) -> ForcedInputCapture:
        """Forced-typing state, for rendering the input field and caret."""
        return self._scheduler.capture

    @property
    def current_line(self) -> ScriptLine | None:
        return self._scheduler.current_line

    @property
    def is_running(self) -> bool:
        return self.state.is_active

    @property
    def is_complete(self) -> bool:
        return self.state is SessionState.COMPLETE

    @property
    def pending_timer_count(self) -> int:
        return self._scheduler.pending_timer_count

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> Subscription:
        """Register a listener for playback events."""
        return self.events.subscribe(listener)

    def unsubscribe(self, listener: EventListener) -> bool:
        """Remove a listener."""
        return self.events.unsubscribe(listener)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, timeline: ScriptTimeline) -> None:
        """
        Start playing a timeline from its first line.

        A session that is not idle is reset first (emitting
        ``session-reset``), so stale timers can never leak into the
        new run.

        Args:
            timeline: Normalized timeline snapshot

        Raises:
            TypeError: If ``timeline`` is not a ScriptTimeline
            SchedulingError: A timer could not be scheduled
        """
        if not isinstance(timeline, ScriptTimeline):
            raise TypeError(
                f"start() expects a ScriptTimeline, got {type(timeline).__name__}; "
                "use start_script() for raw lines"
            )

        with self._lock:
            if self.state is not SessionState.IDLE:
                self._reset("replaced", keep_timeline=False)

            self.last_error = None
            logger.info(
                "Session %s starting: %d lines, %d for the actor",
                self.session_id,
                len(timeline),
                len(timeline.actor_line_indices),
            )
            self._run(timeline)

    def start_script(
        self,
        lines: Iterable[RawLine],
        participants: Iterable[Participant | Mapping[str, Any]],
    ) -> ScriptTimeline:
        """
        Normalize an authored script and start it.

        Validation errors propagate before anything changes.

        Returns:
            The timeline snapshot being played
        """
        timeline = normalize(lines, participants)
        self.start(timeline)
        return timeline

    def restart(self) -> None:
        """
        Replay the current snapshot from index 0.

        Emits ``session-reset``, then the same sequence a fresh
        ``start()`` would. The timeline is not re-normalized.

        Raises:
            NoTimelineError: Nothing is loaded
            SchedulingError: A timer could not be scheduled
        """
        with self._lock:
            timeline = self._scheduler.timeline
            if timeline is None:
                raise NoTimelineError("restart")

            self._reset("restart", keep_timeline=True)
            self.last_error = None
            logger.info("Session %s restarting", self.session_id)
            self._run(timeline)

    def cancel(self) -> None:
        """
        Stop playback and drop the timeline.

        No event is emitted for this run after ``cancel()`` returns,
        even if a timer was already due. Safe in any state; a no-op
        when idle.
        """
        with self._lock:
            state = self.state
            if state is SessionState.IDLE:
                return

            self._reset("cancel", keep_timeline=False)
            logger.info("Session %s cancelled (was %s)", self.session_id, state.value)

    exit = cancel

    def _reset(self, reason: str, keep_timeline: bool) -> None:
        previous = self._scheduler.reset(keep_timeline=keep_timeline)
        if previous is SessionState.CANCELLED:
            # session-reset was already emitted by the failure
            return
        self.diagnostics.record_reset(reason)
        self._scheduler.emit_reset()

    def _run(self, timeline: ScriptTimeline) -> None:
        try:
            self._scheduler.run(timeline)
        except SchedulingError as e:
            self.last_error = e
            raise

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def on_key_signal(self, signal: KeySignal | str) -> str | None:
        """
        Forward a key press to forced typing.

        The host must suppress its native text insertion for every key
        it forwards. When no actor line is pending the signal is
        absorbed and counted.

        Args:
            signal: KeySignal or raw key name

        Returns:
            The completed line text when a submit was accepted, even if
            scheduling the following line then cancels the session
        """
        with self._lock:
            capture = self._scheduler.capture
            target = capture.target_text if capture.is_complete_eligible else None
            try:
                return capture.on_key_signal(signal)
            except SchedulingError as e:
                # The line was delivered; scheduling what follows failed.
                self.last_error = e
                return target

    # -------------------------------------------------------------------------
    # Context manager
    # -------------------------------------------------------------------------

    def __enter__(self) -> "PlaybackSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()

    def get_stats(self) -> dict[str, Any]:
        """Session statistics for host logging."""
        with self._lock:
            return {
                "session_id": self.session_id,
                "state": self.state.value,
                "cursor": self.cursor,
                "delivered": len(self.delivered_lines),
                "total_lines": len(self.timeline) if self.timeline else 0,
                "pending_timers": self.pending_timer_count,
                "diagnostics": self.diagnostics.snapshot(),
            }
