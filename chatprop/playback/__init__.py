"""
Scripted playback and forced input for ChatProp.

Components:
    PlaybackSession     - Facade: start / restart / cancel + event stream
    DeliveryScheduler   - Epoch-guarded, timer-driven walk over a timeline
    ForcedInputCapture  - Keystrokes reveal a predetermined line
    DelayModel          - Simulated human pacing for autonomous lines
    PlaybackConfig      - Pacing constants
    KeySignal           - printable / erase / submit / other
    PlaybackEvent       - What presentation code renders
    Timer services      - Virtual, threading and asyncio clocks

Example:
    from chatprop.playback import PlaybackSession, VirtualTimerService

    timers = VirtualTimerService()
    session = PlaybackSession(timers=timers)
    session.subscribe(lambda e: print(e.kind.value, e.text))

    session.start(timeline)
    timers.advance(2000)
"""

from chatprop.playback.config import PlaybackConfig
from chatprop.playback.delay import DelayModel, LineTiming, compute_timing
from chatprop.playback.signals import KeySignal, SignalKind, classify_key
from chatprop.playback.forced_input import ForcedInputCapture
from chatprop.playback.timers import (
    TimerService,
    VirtualTimerService,
    ThreadingTimerService,
    AsyncioTimerService,
)
from chatprop.playback.events import (
    EventKind,
    PlaybackEvent,
    EventStream,
    Subscription,
)
from chatprop.playback.states import SessionState
from chatprop.playback.delivery import DeliveryScheduler
from chatprop.playback.session import PlaybackSession

__all__ = [
    # Config
    "PlaybackConfig",
    # Timing
    "DelayModel",
    "LineTiming",
    "compute_timing",
    # Input
    "KeySignal",
    "SignalKind",
    "classify_key",
    "ForcedInputCapture",
    # Timers
    "TimerService",
    "VirtualTimerService",
    "ThreadingTimerService",
    "AsyncioTimerService",
    # Events
    "EventKind",
    "PlaybackEvent",
    "EventStream",
    "Subscription",
    # Session
    "SessionState",
    "DeliveryScheduler",
    "PlaybackSession",
]
