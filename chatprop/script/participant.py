"""
Participant configuration for scripted conversations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from chatprop.errors import DuplicateParticipantError, MultipleActorsError


@dataclass(frozen=True)
class Participant:
    """A person taking part in the scripted conversation.

    Exactly one participant is normally the actor: the human performing
    their lines on the prop keyboard. Everyone else is autonomous and
    has their lines delivered on a timer.

    Attributes:
        id: Stable identifier referenced by ``ScriptLine.speaker_id``.
        name: Display name shown in the chat header and bubbles.
        is_actor: Whether this participant is the performer.
        avatar_url: Optional avatar reference for the host.

    Example:
        me = Participant("me", "Sam", is_actor=True)
        friend = Participant("alex", "Alex")
    """

    id: str
    name: str = ""
    is_actor: bool = False
    avatar_url: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Participant":
        """Create a participant from a host dictionary.

        Accepts both snake_case and the host's camelCase keys.
        """
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            is_actor=bool(data.get("is_actor", data.get("isActor", False))),
            avatar_url=str(data.get("avatar_url", data.get("avatarUrl", "")) or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "is_actor": self.is_actor,
            "avatar_url": self.avatar_url,
        }


@dataclass(frozen=True)
class Roster:
    """Validated, immutable set of participants.

    Attributes:
        participants: Participants in declaration order.
    """

    participants: tuple[Participant, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, participants: Iterable[Participant | Mapping[str, Any]]) -> "Roster":
        """Validate participants and build a roster.

        Raises:
            DuplicateParticipantError: Two participants share an id.
            MultipleActorsError: More than one participant is the actor.
        """
        seen: set[str] = set()
        members: list[Participant] = []
        for item in participants:
            p = item if isinstance(item, Participant) else Participant.from_dict(item)
            if p.id in seen:
                raise DuplicateParticipantError(p.id)
            seen.add(p.id)
            members.append(p)

        actors = [p.id for p in members if p.is_actor]
        if len(actors) > 1:
            raise MultipleActorsError(actors)

        return cls(participants=tuple(members))

    def __contains__(self, participant_id: object) -> bool:
        return any(p.id == participant_id for p in self.participants)

    def __len__(self) -> int:
        return len(self.participants)

    def get(self, participant_id: str) -> Participant | None:
        """Look up a participant by id."""
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def resolve(self, speaker: str) -> str | None:
        """Resolve a speaker reference to a participant id.

        Ids win over names; a name only resolves when exactly one
        participant carries it.
        """
        if speaker in self:
            return speaker
        matches = [p.id for p in self.participants if p.name == speaker]
        return matches[0] if len(matches) == 1 else None

    @property
    def actor(self) -> Participant | None:
        """The performing participant, if any."""
        for p in self.participants:
            if p.is_actor:
                return p
        return None

    @property
    def actor_id(self) -> str | None:
        actor = self.actor
        return actor.id if actor else None
