"""
Scripted conversations for ChatProp.

Components:
    Participant     - Someone in the conversation (one may be the actor)
    ScriptLine      - A single scripted message
    TimingMode      - natural / manual / instant pacing
    ScriptTimeline  - Immutable, validated playback plan
    normalize       - Build a ScriptTimeline from authored lines
    Script          - Mutable authoring container
    ScriptParser    - Plain-text "NAME: text" parser

Example:
    from chatprop.script import Participant, ScriptLine, normalize

    timeline = normalize(
        [
            ScriptLine("alex", "you up?"),
            ScriptLine("me", "yeah"),
        ],
        [
            Participant("me", "Sam", is_actor=True),
            Participant("alex", "Alex"),
        ],
    )
"""

from chatprop.script.participant import Participant, Roster
from chatprop.script.line import ScriptLine, TimingMode
from chatprop.script.timeline import ScriptTimeline, normalize
from chatprop.script.script import Script
from chatprop.script.parser import ScriptParser, parse_script

__all__ = [
    "Participant",
    "Roster",
    "ScriptLine",
    "TimingMode",
    "ScriptTimeline",
    "normalize",
    "Script",
    "ScriptParser",
    "parse_script",
]
