"""
Test Fixtures - Common rosters, scripts and sessions.
"""

from __future__ import annotations

from typing import Any

from chatprop.playback.config import PlaybackConfig
from chatprop.playback.session import PlaybackSession
from chatprop.playback.states import SessionState
from chatprop.playback.timers import VirtualTimerService
from chatprop.script.line import ScriptLine, TimingMode
from chatprop.script.participant import Participant
from chatprop.script.timeline import ScriptTimeline, normalize


ACTOR_ID = "me"
FRIEND_ID = "alex"

SAMPLE_SCRIPTS = {
    "greeting": [
        (FRIEND_ID, "hey, you around?"),
        (ACTOR_ID, "yeah what's up"),
        (FRIEND_ID, "check the window"),
    ],
    "autonomous_only": [
        (FRIEND_ID, "hello?"),
        (FRIEND_ID, "anyone there"),
    ],
    "actor_only": [
        (ACTOR_ID, "ok"),
        (ACTOR_ID, "on my way"),
    ],
    "empty_line": [
        (FRIEND_ID, ""),
        (ACTOR_ID, ""),
    ],
}


def create_roster(extra: int = 0) -> list[Participant]:
    """
    Create an actor plus one friend, and optionally more counterparts.

    Args:
        extra: Additional autonomous participants (``friend1`` ...)
    """
    roster = [
        Participant(ACTOR_ID, "Sam", is_actor=True),
        Participant(FRIEND_ID, "Alex"),
    ]
    roster.extend(Participant(f"friend{i}", f"Friend {i}") for i in range(1, extra + 1))
    return roster


def create_timeline(
    rows: list[tuple[str, str]] | str = "greeting",
    timing_mode: TimingMode = TimingMode.NATURAL,
    manual_delay_seconds: float = 0.0,
) -> ScriptTimeline:
    """
    Create a normalized timeline.

    Args:
        rows: ``(speaker_id, text)`` pairs, or a SAMPLE_SCRIPTS key
        timing_mode: Timing for every line
        manual_delay_seconds: Wait for manual timing
    """
    if isinstance(rows, str):
        rows = SAMPLE_SCRIPTS[rows]
    lines = [
        ScriptLine(speaker, text, timing_mode, manual_delay_seconds)
        for speaker, text in rows
    ]
    return normalize(lines, create_roster())


def create_test_session(
    seed: int | None = 1234,
    **config: Any,
) -> tuple[PlaybackSession, VirtualTimerService]:
    """
    Create a session on a virtual clock.

    Returns:
        ``(session, timers)``
    """
    timers = VirtualTimerService()
    session = PlaybackSession(
        timers=timers,
        config=PlaybackConfig(seed=seed, **config),
        session_id="test-session",
    )
    return session, timers


def type_line(session: PlaybackSession, text: str | None = None, submit: bool = True) -> str | None:
    """
    Type the pending actor line with arbitrary keys.

    Args:
        session: Session awaiting actor input
        text: Keys to press (defaults to one "x" per character)
        submit: Press Enter afterwards

    Returns:
        Result of the submit, if pressed
    """
    keys = text if text is not None else "x" * len(session.capture.target_text)
    for key in keys:
        session.on_key_signal(key)
    if submit:
        return session.on_key_signal("Enter")
    return None


def play_through(session: PlaybackSession, timers: VirtualTimerService, max_steps: int = 1000) -> None:
    """
    Play a virtual-clock session to the end, typing every actor line.

    Raises:
        AssertionError: The session did not finish within ``max_steps``
    """
    for _ in range(max_steps):
        timers.run_until_idle()
        if session.state is not SessionState.AWAITING_ACTOR_INPUT:
            return
        type_line(session)
    raise AssertionError(f"Session did not finish within {max_steps} steps")
