"""
Forced input capture - keystrokes reveal a predetermined line.

Whatever key the actor strikes, the next character of the scripted
text appears. Only the signal category matters:

    printable   reveal one more character (no-op at full length)
    erase       hide one character (no-op at zero)
    submit      complete, only when the whole line is revealed
    other       ignored

The capture is a single-threaded state reducer. Every signal is
consumed; absorbed no-ops are counted in diagnostics, never raised.
"""

from __future__ import annotations

import logging
from typing import Callable

from chatprop.errors import InputAlreadyActiveError, InvalidTransitionError
from chatprop.monitoring.metrics import PlaybackDiagnostics
from chatprop.playback.signals import KeySignal, SignalKind, classify_key

logger = logging.getLogger(__name__)


class ForcedInputCapture:
    """Per-line forced-typing state machine.

    Example:
        capture = ForcedInputCapture()
        capture.begin("ok")

        capture.on_key_signal(KeySignal.printable("x"))
        capture.on_key_signal(KeySignal.printable("q"))
        capture.display_text  # "ok"

        capture.on_key_signal(KeySignal.submit())  # returns "ok"
    """

    def __init__(
        self,
        on_complete: Callable[[str], None] | None = None,
        diagnostics: PlaybackDiagnostics | None = None,
    ):
        """
        Initialize capture.

        Args:
            on_complete: Called with the literal target text on completion
            diagnostics: Counters for absorbed signals
        """
        self.on_complete = on_complete
        self.diagnostics = diagnostics or PlaybackDiagnostics()

        self._target: str | None = None
        self._revealed = 0

    @property
    def is_active(self) -> bool:
        """Whether a line is currently being typed."""
        return self._target is not None

    @property
    def target_text(self) -> str:
        return self._target or ""

    @property
    def revealed_length(self) -> int:
        return self._revealed

    @property
    def display_text(self) -> str:
        """The portion of the target currently shown in the input field."""
        return self.target_text[: self._revealed]

    @property
    def remaining(self) -> int:
        return len(self.target_text) - self._revealed

    @property
    def is_complete_eligible(self) -> bool:
        """Whether a submit signal would be accepted now."""
        return self.is_active and self._revealed == len(self.target_text)

    @property
    def progress(self) -> float:
        """Revealed share of the target in percent."""
        if not self.is_active:
            return 0.0
        if not self._target:
            return 100.0
        return self._revealed / len(self._target) * 100

    def begin(self, target_text: str) -> None:
        """
        Start forced typing for a line.

        Args:
            target_text: Exact text the keystrokes will reveal

        Raises:
            InputAlreadyActiveError: A line is already being typed
        """
        if self._target is not None:
            raise InputAlreadyActiveError(self._target)

        self._target = str(target_text)
        self._revealed = 0
        logger.debug("Forced input started (%d chars)", len(self._target))

    def on_key_signal(self, signal: KeySignal | str) -> str | None:
        """
        Apply one key signal.

        Args:
            signal: A KeySignal, or a raw host key name

        Returns:
            The completed text when a submit was accepted, otherwise None
        """
        if isinstance(signal, str):
            signal = classify_key(signal)
        self.diagnostics.record_signal(signal.kind.value)

        if self._target is None:
            self.diagnostics.record_noop("inactive")
            return None

        if signal.kind == SignalKind.PRINTABLE:
            if self._revealed < len(self._target):
                self._revealed += 1
            else:
                self.diagnostics.record_noop("printable_at_max")
            return None

        if signal.kind == SignalKind.ERASE:
            if self._revealed > 0:
                self._revealed -= 1
            else:
                self.diagnostics.record_noop("erase_at_zero")
            return None

        if signal.kind == SignalKind.SUBMIT:
            if self._revealed == len(self._target):
                return self.complete()
            self.diagnostics.record_noop("premature_submit")
            return None

        self.diagnostics.record_noop("ignored")
        return None

    def complete(self) -> str:
        """
        Finalize the current line.

        State is cleared before ``on_complete`` runs, so the callback may
        immediately ``begin()`` the next line.

        Returns:
            The literal target text

        Raises:
            InvalidTransitionError: No line is being typed
        """
        if self._target is None:
            raise InvalidTransitionError("inactive", "complete")

        text = self._target
        self._target = None
        self._revealed = 0
        logger.debug("Forced input completed (%d chars)", len(text))

        if self.on_complete is not None:
            self.on_complete(text)
        return text

    def cancel(self) -> None:
        """Abandon the current line without completing it."""
        if self._target is not None:
            logger.debug("Forced input cancelled at %d/%d", self._revealed, len(self._target))
        self._target = None
        self._revealed = 0
