"""Data models for Chordbook."""

from chordbook.models.pipeline import (
    Artifact,
    BuildContext,
    BuildResult,
    BuildState,
    Outcome,
    SongSource,
    StageResult,
)
from chordbook.models.pitch import (
    NOTATIONS,
    Chord,
    NotationSystem,
    Note,
    Spelling,
    get_notation,
    parse_note,
    spell,
    spell_chord,
    transpose,
)
from chordbook.models.project import Manifest, OutputFormat, OutputTarget
from chordbook.models.song import (
    Directive,
    Line,
    LineKind,
    Placement,
    Section,
    Segment,
    SongDocument,
)
from chordbook.models.view import RenderableSong, RenderedChord, RenderedLine

__all__ = [
    "NOTATIONS",
    "Artifact",
    "BuildContext",
    "BuildResult",
    "BuildState",
    "Chord",
    "Directive",
    "Line",
    "LineKind",
    "Manifest",
    "NotationSystem",
    "Note",
    "Outcome",
    "OutputFormat",
    "OutputTarget",
    "Placement",
    "RenderableSong",
    "RenderedChord",
    "RenderedLine",
    "Section",
    "Segment",
    "SongDocument",
    "SongSource",
    "Spelling",
    "StageResult",
    "get_notation",
    "parse_note",
    "spell",
    "spell_chord",
    "transpose",
]
