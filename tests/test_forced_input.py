"""
Tests for key classification and forced input capture.
"""

import pytest
from hypothesis import given, settings, strategies as st

from chatprop.errors import InputAlreadyActiveError, InvalidTransitionError
from chatprop.monitoring import PlaybackDiagnostics
from chatprop.playback import ForcedInputCapture, KeySignal, SignalKind, classify_key


class TestClassifyKey:
    """Tests for classify_key()."""

    @pytest.mark.parametrize("key", ["a", "Z", "7", "!", " ", "é", "Space"])
    def test_printable(self, key):
        assert classify_key(key).kind == SignalKind.PRINTABLE

    @pytest.mark.parametrize("key", ["Backspace", "Delete", "del"])
    def test_erase(self, key):
        assert classify_key(key).kind == SignalKind.ERASE

    @pytest.mark.parametrize("key", ["Enter", "Return", "\n", "\r"])
    def test_submit(self, key):
        assert classify_key(key).kind == SignalKind.SUBMIT

    @pytest.mark.parametrize("key", ["ArrowLeft", "Shift", "F5", "Tab", "\t", ""])
    def test_other(self, key):
        assert classify_key(key).kind == SignalKind.OTHER

    def test_keeps_raw_key(self):
        assert classify_key("q").key == "q"


class TestForcedInputCapture:
    """Tests for ForcedInputCapture."""

    def test_inactive_by_default(self):
        capture = ForcedInputCapture()
        assert not capture.is_active
        assert capture.display_text == ""
        assert capture.progress == 0.0

    def test_reveals_target_regardless_of_keys(self):
        capture = ForcedInputCapture()
        capture.begin("ok")
        capture.on_key_signal("x")
        assert capture.display_text == "o"
        capture.on_key_signal("#")
        assert capture.display_text == "ok"
        assert capture.is_complete_eligible
        assert capture.progress == 100.0

    def test_submit_returns_target(self):
        completed = []
        capture = ForcedInputCapture(on_complete=completed.append)
        capture.begin("ok")
        capture.on_key_signal(KeySignal.printable())
        capture.on_key_signal(KeySignal.printable())
        assert capture.on_key_signal(KeySignal.submit()) == "ok"
        assert completed == ["ok"]
        assert not capture.is_active

    def test_premature_submit_is_noop(self):
        diagnostics = PlaybackDiagnostics()
        capture = ForcedInputCapture(diagnostics=diagnostics)
        capture.begin("ok")
        capture.on_key_signal("a")
        assert capture.on_key_signal("Enter") is None
        assert capture.is_active
        assert capture.revealed_length == 1
        assert diagnostics.noop_count("premature_submit") == 1

    def test_printable_at_max_is_noop(self):
        diagnostics = PlaybackDiagnostics()
        capture = ForcedInputCapture(diagnostics=diagnostics)
        capture.begin("a")
        for _ in range(4):
            capture.on_key_signal("z")
        assert capture.revealed_length == 1
        assert diagnostics.noop_count("printable_at_max") == 3

    def test_erase(self):
        capture = ForcedInputCapture()
        capture.begin("abc")
        capture.on_key_signal("x")
        capture.on_key_signal("x")
        capture.on_key_signal("Backspace")
        assert capture.display_text == "a"
        assert capture.remaining == 2

    def test_erase_at_zero_is_idempotent(self):
        diagnostics = PlaybackDiagnostics()
        capture = ForcedInputCapture(diagnostics=diagnostics)
        capture.begin("abc")
        for _ in range(5):
            capture.on_key_signal(KeySignal.erase())
        assert capture.revealed_length == 0
        assert diagnostics.noop_count("erase_at_zero") == 5

    def test_other_keys_ignored(self):
        diagnostics = PlaybackDiagnostics()
        capture = ForcedInputCapture(diagnostics=diagnostics)
        capture.begin("abc")
        capture.on_key_signal("ArrowLeft")
        assert capture.revealed_length == 0
        assert diagnostics.noop_count("ignored") == 1

    def test_signals_while_inactive(self):
        diagnostics = PlaybackDiagnostics()
        capture = ForcedInputCapture(diagnostics=diagnostics)
        assert capture.on_key_signal("a") is None
        assert capture.on_key_signal("Enter") is None
        assert diagnostics.noop_count("inactive") == 2

    def test_empty_target_submits_immediately(self):
        capture = ForcedInputCapture()
        capture.begin("")
        assert capture.is_complete_eligible
        assert capture.progress == 100.0
        capture.on_key_signal("a")
        assert capture.revealed_length == 0
        assert capture.on_key_signal("Enter") == ""

    def test_begin_twice_raises(self):
        capture = ForcedInputCapture()
        capture.begin("one")
        with pytest.raises(InputAlreadyActiveError):
            capture.begin("two")
        assert capture.target_text == "one"

    def test_complete_when_inactive_raises(self):
        with pytest.raises(InvalidTransitionError):
            ForcedInputCapture().complete()

    def test_complete_allows_begin_from_callback(self):
        capture = ForcedInputCapture()
        capture.on_complete = lambda text: capture.begin("next")
        capture.begin("a")
        capture.on_key_signal("a")
        assert capture.on_key_signal("Enter") == "a"
        assert capture.target_text == "next"

    def test_cancel(self):
        capture = ForcedInputCapture()
        capture.begin("abc")
        capture.on_key_signal("a")
        capture.cancel()
        assert not capture.is_active
        assert capture.revealed_length == 0
        capture.begin("new")

    def test_signal_kinds_counted(self):
        diagnostics = PlaybackDiagnostics()
        capture = ForcedInputCapture(diagnostics=diagnostics)
        capture.begin("ab")
        for key in ["a", "b", "Backspace", "Shift", "b", "Enter"]:
            capture.on_key_signal(key)
        assert diagnostics.snapshot()["signals"] == {
            "printable": 3,
            "erase": 1,
            "other": 1,
            "submit": 1,
        }

    @given(
        target=st.text(max_size=40),
        keys=st.text(alphabet="qwertyuiop 123!?", max_size=60),
    )
    @settings(max_examples=200)
    def test_completed_text_is_target(self, target, keys):
        capture = ForcedInputCapture()
        capture.begin(target)
        pressed = keys[: len(target)]
        for key in pressed:
            capture.on_key_signal(key)

        result = capture.on_key_signal(KeySignal.submit())
        if len(pressed) == len(target):
            assert result == target
        else:
            assert result is None
            assert capture.is_active

    @given(erases=st.integers(min_value=0, max_value=20))
    def test_erase_never_below_zero(self, erases):
        capture = ForcedInputCapture()
        capture.begin("hello")
        capture.on_key_signal("h")
        for _ in range(erases):
            capture.on_key_signal("Backspace")
        assert capture.revealed_length == max(0, 1 - erases)
