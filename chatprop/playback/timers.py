"""
Timer services - cancellable, deferred callbacks.

Playback never blocks: every wait is a timer. The engine only needs
``now_ms()`` and ``call_later()``; three services are provided:

    VirtualTimerService    deterministic virtual clock (tests, offline)
    ThreadingTimerService  wall clock on threading.Timer
    AsyncioTimerService    wall clock on a running asyncio loop

Cancellation through a handle is best-effort on the real-clock
services; the session's epoch guard makes stale callbacks harmless.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from chatprop.errors import SchedulingError

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Handle returned by ``call_later``."""

    def cancel(self) -> None: ...


class TimerService(Protocol):
    """Minimal clock + timer interface used by the delivery scheduler."""

    def now_ms(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


# =============================================================================
# Virtual clock
# =============================================================================


@dataclass
class VirtualTimer:
    """A timer on the virtual clock."""

    deadline_ms: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class VirtualTimerService:
    """Deterministic timer service driven by ``advance()``.

    Timers due at the same instant fire in the order they were
    scheduled. Callbacks may schedule further timers; zero-delay timers
    scheduled during ``advance()`` fire within the same call.

    Example:
        timers = VirtualTimerService()
        session = PlaybackSession(timers=timers)
        session.start(timeline)

        timers.advance(1500)      # move virtual time forward
        timers.run_until_idle()   # fire everything still pending
    """

    start_ms: float = 0.0
    _now: float = field(default=0.0, init=False)
    _heap: list = field(default_factory=list, init=False, repr=False)
    _counter: itertools.count = field(default_factory=itertools.count, init=False, repr=False)
    _closed: bool = field(default=False, init=False)
    _failures: list = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._now = float(self.start_ms)

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> VirtualTimer:
        if self._closed:
            raise SchedulingError("timer service is closed", delay_ms=delay_ms)
        if self._failures:
            error = self._failures.pop(0)
            raise error if isinstance(error, SchedulingError) else SchedulingError(str(error), delay_ms)

        timer = VirtualTimer(self._now + max(0.0, float(delay_ms)), callback)
        heapq.heappush(self._heap, (timer.deadline_ms, next(self._counter), timer))
        return timer

    @property
    def pending_count(self) -> int:
        """Timers that are neither fired nor cancelled."""
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    @property
    def next_deadline(self) -> float | None:
        live = [deadline for deadline, _, t in self._heap if not t.cancelled]
        return min(live) if live else None

    def _pop_due(self, until_ms: float | None) -> VirtualTimer | None:
        while self._heap:
            deadline, _, timer = self._heap[0]
            if timer.cancelled:
                heapq.heappop(self._heap)
                continue
            if until_ms is not None and deadline > until_ms:
                return None
            heapq.heappop(self._heap)
            return timer
        return None

    def _fire(self, timer: VirtualTimer) -> None:
        self._now = max(self._now, timer.deadline_ms)
        timer.fired = True
        timer.callback()

    def advance(self, ms: float) -> int:
        """Move virtual time forward, firing due timers in order.

        Args:
            ms: Milliseconds to advance.

        Returns:
            Number of timers fired.
        """
        target = self._now + max(0.0, float(ms))
        fired = 0
        while True:
            timer = self._pop_due(target)
            if timer is None:
                break
            self._fire(timer)
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_timers: int = 100_000) -> int:
        """Fire every pending timer, jumping time to each deadline.

        Returns:
            Number of timers fired.

        Raises:
            RuntimeError: If more than ``max_timers`` fire (runaway loop).
        """
        fired = 0
        while True:
            timer = self._pop_due(None)
            if timer is None:
                return fired
            self._fire(timer)
            fired += 1
            if fired > max_timers:
                raise RuntimeError(f"More than {max_timers} timers fired; runaway schedule?")

    def inject_failure(self, error: Exception | None = None) -> None:
        """Make the next ``call_later`` raise SchedulingError."""
        self._failures.append(error or SchedulingError("injected failure"))

    def close(self) -> None:
        """Reject all further scheduling and drop pending timers."""
        self._closed = True
        for _, _, timer in self._heap:
            timer.cancel()
        self._heap.clear()


# =============================================================================
# Wall clock: threads
# =============================================================================


class ThreadingTimerService:
    """Wall-clock timers backed by ``threading.Timer``.

    Callbacks run on timer threads; the session serializes them with its
    own lock, so no two pieces of scheduler logic ever run at once.
    """

    def __init__(self, name: str = "chatprop-timer"):
        self._name = name
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()
        self._closed = False

    def now_ms(self) -> float:
        return time.monotonic() * 1000

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> threading.Timer:
        if self._closed:
            raise SchedulingError("timer service is closed", delay_ms=delay_ms)

        def run() -> None:
            with self._lock:
                self._timers.discard(timer)
            callback()

        timer = threading.Timer(max(0.0, float(delay_ms)) / 1000, run)
        timer.daemon = True
        timer.name = self._name
        with self._lock:
            self._timers.add(timer)
        try:
            timer.start()
        except RuntimeError as e:
            with self._lock:
                self._timers.discard(timer)
            raise SchedulingError(str(e), delay_ms=delay_ms) from e
        return timer

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for t in self._timers if t.is_alive())

    def close(self) -> None:
        """Cancel outstanding timers and reject new ones."""
        with self._lock:
            self._closed = True
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()


# =============================================================================
# Wall clock: asyncio
# =============================================================================


class AsyncioTimerService:
    """Wall-clock timers on an asyncio event loop.

    All callbacks run on the loop thread, which gives the single logical
    thread of control for free.

    Example:
        async def perform():
            session = PlaybackSession(timers=AsyncioTimerService())
            session.start(timeline)
            await asyncio.sleep(10)
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise SchedulingError("no running event loop") from e
        return self._loop

    def now_ms(self) -> float:
        if self._loop is None:
            return time.monotonic() * 1000
        return self._loop.time() * 1000

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self.loop
        if loop.is_closed():
            raise SchedulingError("event loop is closed", delay_ms=delay_ms)
        try:
            return loop.call_later(max(0.0, float(delay_ms)) / 1000, callback)
        except RuntimeError as e:
            raise SchedulingError(str(e), delay_ms=delay_ms) from e
