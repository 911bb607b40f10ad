"""
ChatProp - scripted chat playback for on-camera prop phones.

An author writes a conversation in advance. During the take the
counterpart messages arrive on their own with believable typing
indicators, while the actor's messages appear one scripted character
per key press, whatever key is actually struck.

Architecture:
    Script → normalize() → ScriptTimeline → PlaybackSession → PlaybackEvents

Public API (stable):
    PlaybackSession   - Start / restart / cancel a performance; subscribe to events
    ScriptTimeline    - Immutable playback plan built by normalize()
    ScriptLine        - One scripted message
    Participant       - Someone in the chat; one may be the actor
    PlaybackConfig    - Pacing constants (jitter, typing caps, delays)
    KeySignal         - Keystroke category for forced typing

Packages:
    script      - Lines, participants, timelines, builder and text parser
    playback    - Delay model, forced input, timers, scheduler, session
    monitoring  - Diagnostic counters and structured logging
    testing     - EventRecorder and fixtures for host tests

Example:
    from chatprop import PlaybackSession, Participant, ScriptLine, normalize

    timeline = normalize(
        [ScriptLine("alex", "you up?"), ScriptLine("me", "yeah")],
        [Participant("me", "Sam", is_actor=True), Participant("alex", "Alex")],
    )

    session = PlaybackSession()
    session.subscribe(render)
    session.start(timeline)

    # wire the prop keyboard:
    on_keydown = lambda key: session.on_key_signal(key)
"""

from chatprop.errors import (
    ChatPropError,
    ValidationError,
    EmptyScriptError,
    UnknownSpeakerError,
    DuplicateLineIdError,
    DuplicateParticipantError,
    MultipleActorsError,
    InputAlreadyActiveError,
    NoTimelineError,
    InvalidTransitionError,
    SchedulingError,
)
from chatprop.script import (
    Participant,
    ScriptLine,
    TimingMode,
    ScriptTimeline,
    normalize,
    Script,
    ScriptParser,
)
from chatprop.playback import (
    PlaybackConfig,
    DelayModel,
    compute_timing,
    KeySignal,
    SignalKind,
    classify_key,
    ForcedInputCapture,
    VirtualTimerService,
    ThreadingTimerService,
    AsyncioTimerService,
    EventKind,
    PlaybackEvent,
    SessionState,
    PlaybackSession,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "ChatPropError",
    "ValidationError",
    "EmptyScriptError",
    "UnknownSpeakerError",
    "DuplicateLineIdError",
    "DuplicateParticipantError",
    "MultipleActorsError",
    "InputAlreadyActiveError",
    "NoTimelineError",
    "InvalidTransitionError",
    "SchedulingError",
    # Script
    "Participant",
    "ScriptLine",
    "TimingMode",
    "ScriptTimeline",
    "normalize",
    "Script",
    "ScriptParser",
    # Playback
    "PlaybackConfig",
    "DelayModel",
    "compute_timing",
    "KeySignal",
    "SignalKind",
    "classify_key",
    "ForcedInputCapture",
    "VirtualTimerService",
    "ThreadingTimerService",
    "AsyncioTimerService",
    "EventKind",
    "PlaybackEvent",
    "SessionState",
    "PlaybackSession",
]
