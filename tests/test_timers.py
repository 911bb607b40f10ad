"""
Tests for timer services.
"""

import asyncio
import threading

import pytest

from chatprop.errors import SchedulingError
from chatprop.playback import AsyncioTimerService, ThreadingTimerService, VirtualTimerService


class TestVirtualTimerService:
    """Tests for the deterministic virtual clock."""

    def test_fires_in_deadline_order(self):
        timers = VirtualTimerService()
        fired = []
        timers.call_later(300, lambda: fired.append("c"))
        timers.call_later(100, lambda: fired.append("a"))
        timers.call_later(200, lambda: fired.append("b"))

        assert timers.advance(250) == 2
        assert fired == ["a", "b"]
        assert timers.now_ms() == 250
        timers.advance(50)
        assert fired == ["a", "b", "c"]

    def test_equal_deadlines_are_fifo(self):
        timers = VirtualTimerService()
        fired = []
        for name in "xyz":
            timers.call_later(0, lambda name=name: fired.append(name))
        timers.advance(0)
        assert fired == ["x", "y", "z"]

    def test_clock_is_deadline_during_callback(self):
        timers = VirtualTimerService(start_ms=1000)
        seen = []
        timers.call_later(40, lambda: seen.append(timers.now_ms()))
        timers.advance(100)
        assert seen == [1040]
        assert timers.now_ms() == 1100

    def test_nested_zero_delay_fires_in_same_advance(self):
        timers = VirtualTimerService()
        fired = []
        timers.call_later(10, lambda: timers.call_later(0, lambda: fired.append("inner")))
        timers.advance(10)
        assert fired == ["inner"]

    def test_cancel(self):
        timers = VirtualTimerService()
        fired = []
        handle = timers.call_later(10, lambda: fired.append(1))
        assert timers.pending_count == 1
        handle.cancel()
        assert timers.pending_count == 0
        assert timers.next_deadline is None
        timers.run_until_idle()
        assert fired == []

    def test_negative_delay_is_now(self):
        timers = VirtualTimerService()
        handle = timers.call_later(-50, lambda: None)
        assert handle.deadline_ms == 0

    def test_run_until_idle(self):
        timers = VirtualTimerService()
        fired = []
        timers.call_later(5000, lambda: fired.append(1))
        timers.call_later(10, lambda: fired.append(0))
        assert timers.run_until_idle() == 2
        assert fired == [0, 1]
        assert timers.now_ms() == 5000

    def test_runaway_guard(self):
        timers = VirtualTimerService()

        def again():
            timers.call_later(1, again)

        timers.call_later(1, again)
        with pytest.raises(RuntimeError):
            timers.run_until_idle(max_timers=50)

    def test_inject_failure(self):
        timers = VirtualTimerService()
        timers.inject_failure()
        with pytest.raises(SchedulingError):
            timers.call_later(10, lambda: None)
        timers.call_later(10, lambda: None)
        assert timers.pending_count == 1

    def test_close(self):
        timers = VirtualTimerService()
        fired = []
        timers.call_later(10, lambda: fired.append(1))
        timers.close()
        timers.run_until_idle()
        assert fired == []
        with pytest.raises(SchedulingError):
            timers.call_later(10, lambda: None)


class TestThreadingTimerService:
    """Tests for wall-clock thread timers."""

    def test_fires(self):
        timers = ThreadingTimerService()
        done = threading.Event()
        timers.call_later(10, done.set)
        assert done.wait(2.0)

    def test_cancel(self):
        timers = ThreadingTimerService()
        done = threading.Event()
        handle = timers.call_later(200, done.set)
        handle.cancel()
        assert not done.wait(0.4)

    def test_close_rejects(self):
        timers = ThreadingTimerService()
        done = threading.Event()
        timers.call_later(200, done.set)
        timers.close()
        assert timers.pending_count == 0
        with pytest.raises(SchedulingError):
            timers.call_later(10, lambda: None)
        assert not done.wait(0.4)

    def test_now_is_monotonic(self):
        timers = ThreadingTimerService()
        first = timers.now_ms()
        assert timers.now_ms() >= first


class TestAsyncioTimerService:
    """Tests for asyncio loop timers."""

    def test_fires_on_loop(self):
        async def scenario():
            timers = AsyncioTimerService()
            fired = []
            timers.call_later(10, lambda: fired.append(timers.now_ms()))
            await asyncio.sleep(0.1)
            return fired

        fired = asyncio.run(scenario())
        assert len(fired) == 1

    def test_cancel(self):
        async def scenario():
            timers = AsyncioTimerService()
            fired = []
            handle = timers.call_later(10, lambda: fired.append(1))
            handle.cancel()
            await asyncio.sleep(0.05)
            return fired

        assert asyncio.run(scenario()) == []

    def test_requires_running_loop(self):
        timers = AsyncioTimerService()
        with pytest.raises(SchedulingError):
            timers.call_later(10, lambda: None)
