"""
Key signals - input-device independent keystroke categories.

Forced typing only cares about the *category* of a keystroke, never
its identity. Hosts translate their native keyboard events into a
KeySignal (``classify_key`` handles the common key names) and must
suppress the native text insertion themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SignalKind(Enum):
    """Category of a key press."""

    PRINTABLE = "printable"
    """Any single non-control character key."""

    ERASE = "erase"
    """Backspace or delete."""

    SUBMIT = "submit"
    """Enter or return."""

    OTHER = "other"
    """Everything else (arrows, modifiers, function keys)."""


ERASE_KEYS = frozenset({"backspace", "delete", "del"})
SUBMIT_KEYS = frozenset({"enter", "return", "\n", "\r"})
SPACE_KEYS = frozenset({"space", "spacebar"})


@dataclass(frozen=True)
class KeySignal:
    """A classified key press.

    Attributes:
        kind: Signal category.
        key: Raw key name as reported by the host (diagnostics only).
    """

    kind: SignalKind
    key: str = ""

    @classmethod
    def printable(cls, key: str = "") -> "KeySignal":
        return cls(SignalKind.PRINTABLE, key)

    @classmethod
    def erase(cls) -> "KeySignal":
        return cls(SignalKind.ERASE, "Backspace")

    @classmethod
    def submit(cls) -> "KeySignal":
        return cls(SignalKind.SUBMIT, "Enter")

    @classmethod
    def other(cls, key: str = "") -> "KeySignal":
        return cls(SignalKind.OTHER, key)


def classify_key(key: str) -> KeySignal:
    """Classify a host key name into a KeySignal.

    Args:
        key: Key name, e.g. ``"a"``, ``" "``, ``"Backspace"``, ``"Enter"``.

    Returns:
        KeySignal for the key.
    """
    lowered = key.lower()
    if lowered in ERASE_KEYS:
        return KeySignal(SignalKind.ERASE, key)
    if lowered in SUBMIT_KEYS:
        return KeySignal(SignalKind.SUBMIT, key)
    if lowered in SPACE_KEYS:
        return KeySignal(SignalKind.PRINTABLE, key)
    if len(key) == 1 and key.isprintable():
        return KeySignal(SignalKind.PRINTABLE, key)
    return KeySignal(SignalKind.OTHER, key)
