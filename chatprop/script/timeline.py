"""
Script timeline - the immutable playback plan.

A ScriptTimeline is produced once per ``start()`` by ``normalize()``.
Lines are addressed exclusively by their 0-based index during playback.

Invariants enforced:
    1. Order is authorial order; nothing is reordered
    2. Every speaker resolves to a roster participant
    3. Line ids are unique
    4. The timeline is a snapshot: mutating the source has no effect
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, Mapping, Sequence, Union

from chatprop.errors import DuplicateLineIdError, EmptyScriptError, UnknownSpeakerError
from chatprop.script.line import ScriptLine
from chatprop.script.participant import Participant, Roster

logger = logging.getLogger(__name__)


RawLine = Union[ScriptLine, Mapping[str, Any], Sequence[str]]


@dataclass(frozen=True)
class ScriptTimeline:
    """Ordered, immutable sequence of script lines.

    Attributes:
        lines: Lines in authored order.
        roster: Validated participants.
        actor_line_indices: Indices of lines owned by the actor.
        autonomous_line_indices: Indices of every other line.
    """

    lines: tuple[ScriptLine, ...]
    roster: Roster = field(default_factory=Roster)
    actor_line_indices: tuple[int, ...] = field(init=False)
    autonomous_line_indices: tuple[int, ...] = field(init=False)
    _actor_flags: tuple[bool, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        actor_id = self.roster.actor_id
        flags = tuple(
            actor_id is not None and line.speaker_id == actor_id
            for line in self.lines
        )
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "_actor_flags", flags)
        object.__setattr__(
            self, "actor_line_indices", tuple(i for i, f in enumerate(flags) if f)
        )
        object.__setattr__(
            self, "autonomous_line_indices", tuple(i for i, f in enumerate(flags) if not f)
        )

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> ScriptLine:
        return self.lines[index]

    def __iter__(self) -> Iterator[ScriptLine]:
        return iter(self.lines)

    def is_actor_line(self, index: int) -> bool:
        """Check whether the line at ``index`` belongs to the actor."""
        return self._actor_flags[index]

    @property
    def actor_id(self) -> str | None:
        return self.roster.actor_id

    @property
    def line_ids(self) -> list[str]:
        return [line.id for line in self.lines]

    def speaker_lines(self, speaker_id: str) -> list[ScriptLine]:
        """Get lines for a specific speaker.

        Args:
            speaker_id: Participant identifier.

        Returns:
            Lines spoken by that participant, in order.
        """
        return [line for line in self.lines if line.speaker_id == speaker_id]


def _coerce_line(raw: RawLine) -> ScriptLine:
    if isinstance(raw, ScriptLine):
        return raw
    if isinstance(raw, Mapping):
        return ScriptLine.from_dict(raw)
    speaker_id, text = raw
    return ScriptLine(speaker_id=speaker_id, text=text)


def normalize(
    raw_lines: Iterable[RawLine],
    participants: Iterable[Participant | Mapping[str, Any]] | Roster,
) -> ScriptTimeline:
    """Validate an authored script and snapshot it into a timeline.

    Args:
        raw_lines: Lines as ScriptLine objects, host dictionaries, or
            ``(speaker_id, text)`` pairs.
        participants: The participant roster.

    Returns:
        Immutable ScriptTimeline.

    Raises:
        EmptyScriptError: No lines were given.
        UnknownSpeakerError: A line names a speaker outside the roster.
        DuplicateLineIdError: Two lines share an explicit id.
        MultipleActorsError: The roster has more than one actor.
    """
    roster = participants if isinstance(participants, Roster) else Roster.build(participants)
    lines = [_coerce_line(raw) for raw in raw_lines]
    if not lines:
        raise EmptyScriptError()

    explicit_ids = {line.id for line in lines if line.id}
    seen: set[str] = set()
    normalized: list[ScriptLine] = []

    for index, line in enumerate(lines):
        speaker_id = roster.resolve(line.speaker_id)
        if speaker_id is None:
            raise UnknownSpeakerError(line.speaker_id, line_index=index)
        if speaker_id != line.speaker_id:
            line = replace(line, speaker_id=speaker_id)

        if line.id:
            if line.id in seen:
                raise DuplicateLineIdError(line.id)
        else:
            generated = f"line-{index}"
            while generated in explicit_ids or generated in seen:
                generated += "_"
            line = line.with_id(generated)
        seen.add(line.id)

        normalized.append(line)

    timeline = ScriptTimeline(lines=tuple(normalized), roster=roster)
    logger.debug(
        "Normalized script: %d lines (%d actor, %d autonomous)",
        len(timeline),
        len(timeline.actor_line_indices),
        len(timeline.autonomous_line_indices),
    )
    return timeline
