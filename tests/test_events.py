"""
Tests for the event stream and session state table.
"""

import pytest

from chatprop.errors import ChatPropError, InvalidTransitionError
from chatprop.playback import EventKind, EventStream, PlaybackEvent, SessionState
from chatprop.playback.states import check_transition, is_valid_transition
from chatprop.script import ScriptLine


class TestPlaybackEvent:
    """Tests for PlaybackEvent."""

    def test_line_projections(self):
        line = ScriptLine("alex", "hi", id="line-0")
        event = PlaybackEvent(EventKind.LINE_DELIVERED, "alex", line, 0, delivered_at=10.0)
        assert event.line_id == "line-0"
        assert event.text == "hi"

    def test_to_dict(self):
        line = ScriptLine("alex", "hi", id="line-0")
        event = PlaybackEvent(
            EventKind.LINE_DELIVERED, "alex", line, 0,
            delivered_at=10.0, timestamp_ms=10.0, sequence=4,
        )
        data = event.to_dict()
        assert data["kind"] == "line-delivered"
        assert data["line"]["text"] == "hi"
        assert data["line_index"] == 0
        assert data["delivered_at"] == 10.0
        assert data["sequence"] == 4

    def test_to_dict_omits_empty_fields(self):
        data = PlaybackEvent(EventKind.SESSION_COMPLETE).to_dict()
        assert set(data) == {"kind", "timestamp_ms", "sequence"}

    def test_signature_ignores_timing(self):
        a = PlaybackEvent(EventKind.TYPING_STARTED, "alex", line_index=0, timestamp_ms=1, sequence=1)
        b = PlaybackEvent(EventKind.TYPING_STARTED, "alex", line_index=0, timestamp_ms=9, sequence=7)
        assert a != b
        assert a.signature() == b.signature()


class TestEventStream:
    """Tests for EventStream."""

    def test_fan_out(self):
        stream = EventStream()
        first, second = [], []
        stream.subscribe(first.append)
        stream.subscribe(second.append)
        event = PlaybackEvent(EventKind.SESSION_COMPLETE)
        stream.emit(event)
        assert first == [event]
        assert second == [event]

    def test_duplicate_subscribe_is_ignored(self):
        stream = EventStream()
        seen = []
        stream.subscribe(seen.append)
        stream.subscribe(seen.append)
        assert stream.listener_count == 1
        stream.emit(PlaybackEvent(EventKind.SESSION_RESET))
        assert len(seen) == 1

    def test_unsubscribe_during_emit(self):
        stream = EventStream()
        seen = []

        def once(event):
            seen.append(event)
            stream.unsubscribe(once)

        stream.subscribe(once)
        stream.emit(PlaybackEvent(EventKind.SESSION_RESET))
        stream.emit(PlaybackEvent(EventKind.SESSION_RESET))
        assert len(seen) == 1

    def test_listener_error_is_isolated(self, caplog):
        stream = EventStream()
        seen = []

        def broken(event):
            raise ValueError("nope")

        stream.subscribe(broken)
        stream.subscribe(seen.append)
        stream.emit(PlaybackEvent(EventKind.SESSION_COMPLETE))
        assert len(seen) == 1
        assert "session-complete" in caplog.text


class TestSessionStates:
    """Tests for the transition table."""

    def test_active_states(self):
        assert SessionState.RUNNING.is_active
        assert SessionState.AWAITING_ACTOR_INPUT.is_active
        assert not SessionState.COMPLETE.is_active

    @pytest.mark.parametrize("state", list(SessionState))
    def test_idle_reachable_from_everywhere(self, state):
        assert is_valid_transition(state, SessionState.IDLE)

    def test_valid_paths(self):
        assert is_valid_transition(SessionState.IDLE, SessionState.RUNNING)
        assert is_valid_transition(SessionState.RUNNING, SessionState.DELIVERING_AUTONOMOUS)
        assert is_valid_transition(SessionState.AWAITING_ACTOR_INPUT, SessionState.CANCELLED)

    def test_invalid_paths(self):
        assert not is_valid_transition(SessionState.IDLE, SessionState.AWAITING_ACTOR_INPUT)
        assert not is_valid_transition(SessionState.COMPLETE, SessionState.RUNNING)
        with pytest.raises(InvalidTransitionError) as exc:
            check_transition(SessionState.COMPLETE, SessionState.DELIVERING_AUTONOMOUS)
        assert exc.value.from_state == "complete"
        assert isinstance(exc.value, ChatPropError)
