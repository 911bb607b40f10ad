"""
Mutable script container for authoring.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from chatprop.errors import UnknownSpeakerError
from chatprop.script.line import ScriptLine, TimingMode
from chatprop.script.participant import Participant
from chatprop.script.timeline import ScriptTimeline, normalize


class Script:
    """Authoring-side conversation script.

    Collects participants and lines while a scene is being written.
    Playback never reads a Script directly: ``to_timeline()`` snapshots
    it through ``normalize()``, so later edits do not reach a running
    session.

    Example:
        script = Script([
            Participant("me", "Sam", is_actor=True),
            Participant("alex", "Alex"),
        ])

        script.add("alex", "you up?")
        script.add("me", "yeah, what's going on")
        script.add("alex", "look outside", TimingMode.MANUAL, 3)

        timeline = script.to_timeline()
    """

    def __init__(
        self,
        participants: Iterable[Participant] | None = None,
        default_timing: TimingMode = TimingMode.NATURAL,
    ):
        """Initialize script.

        Args:
            participants: Initial participants.
            default_timing: Timing mode for lines added without one.
        """
        self._participants: dict[str, Participant] = {}
        for p in participants or ():
            self._participants[p.id] = p
        self._lines: list[ScriptLine] = []
        self._default_timing = default_timing

    @property
    def participants(self) -> list[Participant]:
        """Get participants in declaration order."""
        return list(self._participants.values())

    @property
    def lines(self) -> list[ScriptLine]:
        """Get list of lines."""
        return self._lines.copy()

    def __len__(self) -> int:
        return len(self._lines)

    def add_participant(self, participant: Participant) -> "Script":
        """Add or replace a participant.

        Returns:
            Self for chaining.
        """
        self._participants[participant.id] = participant
        return self

    def add(
        self,
        speaker_id: str,
        text: str,
        timing_mode: TimingMode | str | None = None,
        manual_delay_seconds: float = 0.0,
        line_id: str = "",
    ) -> "Script":
        """Append a line.

        Args:
            speaker_id: Participant saying the line.
            text: Line text.
            timing_mode: Delay strategy, defaults to the script default.
            manual_delay_seconds: Wait for manual timing.
            line_id: Optional explicit id.

        Returns:
            Self for chaining.

        Raises:
            UnknownSpeakerError: If the speaker is not a participant.
        """
        if speaker_id not in self._participants:
            raise UnknownSpeakerError(speaker_id, line_index=len(self._lines))

        mode = self._default_timing if timing_mode is None else TimingMode.parse(timing_mode)
        self._lines.append(
            ScriptLine(
                speaker_id=speaker_id,
                text=text,
                timing_mode=mode,
                manual_delay_seconds=manual_delay_seconds,
                id=line_id,
            )
        )
        return self

    def from_rows(
        self,
        rows: Sequence[tuple[str, str] | Mapping[str, Any]],
    ) -> "Script":
        """Load lines from ``(speaker_id, text)`` pairs or host dicts.

        Returns:
            Self for chaining.
        """
        for row in rows:
            if isinstance(row, Mapping):
                line = ScriptLine.from_dict(row)
                self.add(
                    line.speaker_id,
                    line.text,
                    line.timing_mode,
                    line.manual_delay_seconds,
                    line.id,
                )
            else:
                speaker_id, text = row
                self.add(speaker_id, text)
        return self

    def move(self, from_index: int, to_index: int) -> "Script":
        """Move a line to a new position.

        Returns:
            Self for chaining.
        """
        line = self._lines.pop(from_index)
        self._lines.insert(to_index, line)
        return self

    def remove(self, index: int) -> "Script":
        """Remove the line at ``index``.

        Returns:
            Self for chaining.
        """
        del self._lines[index]
        return self

    def clear(self) -> "Script":
        """Clear all lines.

        Returns:
            Self for chaining.
        """
        self._lines.clear()
        return self

    def to_timeline(self) -> ScriptTimeline:
        """Snapshot the script into an immutable timeline."""
        return normalize(self._lines, self._participants.values())
