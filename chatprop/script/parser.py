"""
Plain-text script parsing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator

from chatprop.script.line import ScriptLine, TimingMode
from chatprop.script.participant import Participant


@dataclass
class ParsedLine:
    """A parsed line from a script."""

    speaker_id: str
    text: str
    timing_mode: TimingMode = TimingMode.NATURAL
    manual_delay_seconds: float = 0.0
    line_number: int = 0


class ScriptParser:
    """Parse plain-text chat scripts into lines and participants.

    Format, one message per line:
    - ``NAME: text``               natural timing
    - ``NAME [2.5s]: text``        manual timing, 2.5 second wait
    - ``NAME [instant]: text``     instant delivery
    - ``# comment``                ignored

    Text after the first colon is kept verbatim (minus surrounding
    whitespace), so messages may contain colons of their own.

    Example:
        parser = ScriptParser(actor="ME")

        participants, lines = parser.parse('''
        ALEX: you up?
        ME: yeah why
        ALEX [4s]: look outside
        ''')

        timeline = normalize(lines, participants)
    """

    PATTERNS = {
        "line": re.compile(
            r"^(?P<speaker>[^\[\]:#][^\[\]:]*?)\s*"
            r"(?:\[(?P<timing>[^\]]*)\])?\s*:\s?(?P<text>.*)$"
        ),
        "seconds": re.compile(r"^(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>s|ms)?$", re.IGNORECASE),
    }

    def __init__(
        self,
        actor: str | None = None,
        normalize_speakers: bool = True,
    ):
        """Initialize parser.

        Args:
            actor: Name of the performing participant, if any.
            normalize_speakers: Normalize speaker ids to lowercase.
        """
        self.normalize_speakers = normalize_speakers
        self.actor = self._key(actor) if actor else None
        self._participants: dict[str, Participant] = {}

    def _key(self, name: str) -> str:
        name = name.strip()
        return name.lower() if self.normalize_speakers else name

    def parse(self, script: str) -> tuple[list[Participant], list[ScriptLine]]:
        """Parse a script.

        Args:
            script: Script text to parse.

        Returns:
            ``(participants, lines)`` ready for ``normalize()``.
        """
        self._participants = {}
        lines = [
            ScriptLine(
                speaker_id=p.speaker_id,
                text=p.text,
                timing_mode=p.timing_mode,
                manual_delay_seconds=p.manual_delay_seconds,
            )
            for p in self._parse_lines(script)
        ]
        return self.get_participants(), lines

    def get_participants(self) -> list[Participant]:
        """Get participants of the most recently parsed script."""
        return list(self._participants.values())

    def _parse_lines(self, script: str) -> Iterator[ParsedLine]:
        for number, raw in enumerate(script.splitlines(), 1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            parsed = self._parse_line(line)
            if parsed is None:
                continue
            parsed.line_number = number

            name = parsed.speaker_id
            key = self._key(name)
            if key not in self._participants:
                self._participants[key] = Participant(
                    id=key,
                    name=name,
                    is_actor=key == self.actor,
                )
            parsed.speaker_id = key
            yield parsed

    def _parse_line(self, line: str) -> ParsedLine | None:
        match = self.PATTERNS["line"].match(line)
        if not match:
            return None

        mode, delay = self._parse_timing(match.group("timing"))
        return ParsedLine(
            speaker_id=match.group("speaker").strip(),
            text=match.group("text").strip(),
            timing_mode=mode,
            manual_delay_seconds=delay,
        )

    def _parse_timing(self, tag: str | None) -> tuple[TimingMode, float]:
        if tag is None:
            return TimingMode.NATURAL, 0.0
        tag = tag.strip().lower()
        if tag in ("instant", "now", "0"):
            return TimingMode.INSTANT, 0.0
        if tag in ("", "natural"):
            return TimingMode.NATURAL, 0.0

        match = self.PATTERNS["seconds"].match(tag)
        if not match:
            return TimingMode.NATURAL, 0.0
        value = float(match.group("value"))
        if (match.group("unit") or "s").lower() == "ms":
            value /= 1000
        return TimingMode.MANUAL, value


def parse_script(script: str, **kwargs: Any) -> tuple[list[Participant], list[ScriptLine]]:
    """Convenience function to parse a script.

    Args:
        script: Script text.
        **kwargs: Parser options.

    Returns:
        ``(participants, lines)``.
    """
    parser = ScriptParser(**kwargs)
    return parser.parse(script)
