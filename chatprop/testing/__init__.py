"""
ChatProp Testing Utilities

Tools for testing hosts and scripts against the playback engine.

Components:
    EventRecorder      - Subscriber that captures PlaybackEvents
    create_*           - Rosters, timelines and virtual-clock sessions
    type_line          - Drive forced typing with arbitrary keys
    play_through       - Run a virtual-clock session to completion
    LeakyTimerService  - Timers whose cancel() is ignored
    FixedRandom        - Constant jitter source

Usage:
    from chatprop.testing import EventRecorder, create_test_session, create_timeline

    session, timers = create_test_session()
    recorder = EventRecorder.attach(session)
    session.start(create_timeline())
    timers.run_until_idle()
"""

from chatprop.testing.recorder import EventRecorder
from chatprop.testing.mock import FixedRandom, LeakyTimerService

from chatprop.testing.fixtures import (
    ACTOR_ID,
    FRIEND_ID,
    SAMPLE_SCRIPTS,
    create_roster,
    create_timeline,
    create_test_session,
    type_line,
    play_through,
)

__all__ = [
    "EventRecorder",
    "ACTOR_ID",
    "FRIEND_ID",
    "SAMPLE_SCRIPTS",
    "create_roster",
    "create_timeline",
    "create_test_session",
    "type_line",
    "play_through",
    "FixedRandom",
    "LeakyTimerService",
]
