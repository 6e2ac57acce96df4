"""Derived song views.

A ``RenderableSong`` is what one output target sees of a ``SongDocument``:
every chord shifted and spelled for that target. Only the chord layer is
rebuilt; lyric text, sections and line structure are shared with the
document.
"""

from dataclasses import dataclass, replace
from typing import Any

from chordbook.models.pitch import (
    Chord,
    NotationSystem,
    Spelling,
    key_spelling,
    spell_chord,
)
from chordbook.models.song import Directive, Line, LineKind, SongDocument


@dataclass(frozen=True)
class RenderedChord:
    """A chord as displayed by one target."""

    name: str
    offset: int
    chord: Chord  # transposed
    alt: str | None = None


@dataclass(frozen=True)
class RenderedSegment:
    text: str
    chords: tuple[RenderedChord, ...] = ()


@dataclass(frozen=True)
class RenderedLine:
    line: Line
    segments: tuple[RenderedSegment, ...] = ()
    directive: Directive | None = None

    @property
    def kind(self) -> LineKind:
        return self.line.kind

    @property
    def lyrics(self) -> str:
        return self.line.lyrics


def _prefer(key: Chord | None, semitones: int) -> Spelling | None:
    # Untransposed songs keep the author's accidentals
    if key is None or semitones == 0:
        return None
    return key_spelling(key.transposed(semitones))


@dataclass(frozen=True)
class RenderableSong:
    """A song transposed by ``semitones`` and spelled in ``notation``."""

    document: SongDocument
    semitones: int
    notation: NotationSystem
    alt_notation: NotationSystem | None
    lines: tuple[RenderedLine, ...]
    key: str | None = None
    alt_key: str | None = None

    @classmethod
    def derive(
        cls,
        document: SongDocument,
        semitones: int,
        notation: NotationSystem,
        alt_notation: NotationSystem | None = None,
    ) -> "RenderableSong":
        def display(chord: Chord, shift: int) -> tuple[Chord, str, str | None]:
            prefer = _prefer(document.key, shift)
            moved = chord.transposed(shift)
            name = spell_chord(moved, notation, prefer)
            alt = spell_chord(moved, alt_notation, prefer) if alt_notation else None
            return moved, name, alt

        lines: list[RenderedLine] = []
        for line in document.lines:
            shift = semitones + line.transpose
            segments: list[RenderedSegment] = []
            for segment in line.segments:
                chords: list[RenderedChord] = []
                for placement in segment.placements:
                    moved, name, alt = display(placement.chord, shift)
                    chords.append(
                        RenderedChord(name=name, offset=placement.offset, chord=moved, alt=alt)
                    )
                segments.append(RenderedSegment(text=segment.text, chords=tuple(chords)))

            directive = line.directive
            if directive is not None and directive.chord is not None:
                moved, name, _ = display(directive.chord, shift)
                directive = replace(
                    directive,
                    value=name,
                    raw=f"{directive.key}: {name}",
                    chord=moved,
                )
            lines.append(RenderedLine(line=line, segments=tuple(segments), directive=directive))

        key = alt_key = None
        if document.key is not None:
            _, key, alt_key = display(document.key, semitones + _key_transpose(document))

        return cls(
            document=document,
            semitones=semitones,
            notation=notation,
            alt_notation=alt_notation,
            lines=tuple(lines),
            key=key,
            alt_key=alt_key,
        )

    @property
    def directives(self) -> tuple[Directive, ...]:
        return tuple(line.directive for line in self.lines if line.directive is not None)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible tree handed to templates."""
        doc = self.document
        return {
            "id": doc.song_id,
            "title": doc.title,
            "subtitles": list(doc.subtitles),
            "artist": doc.artist,
            "metadata": doc.metadata | ({"key": self.key} if self.key else {}),
            "key": self.key,
            "alt_key": self.alt_key,
            "transpose": self.semitones,
            "notation": self.notation.name,
            "alt_notation": self.alt_notation.name if self.alt_notation else None,
            "sections": [
                {
                    "kind": s.kind,
                    "label": s.label,
                    "number": s.number,
                    "start": s.start,
                    "end": s.end,
                }
                for s in doc.sections
            ],
            "lines": [_line_dict(line) for line in self.lines],
            "opaque_directives": [
                _directive_dict(d) for d in self.directives if not d.known
            ],
        }


def _key_transpose(document: SongDocument) -> int:
    """In-song transposition in force on the first key directive."""
    for line in document.lines:
        if line.directive is not None and line.directive.name == "key":
            return line.transpose
    return 0


def _directive_dict(directive: Directive) -> dict[str, Any]:
    return {
        "name": directive.name,
        "key": directive.key,
        "value": directive.value,
        "raw": directive.raw,
        "known": directive.known,
        "ref": directive.ref,
    }


def _line_dict(rendered: RenderedLine) -> dict[str, Any]:
    line = rendered.line
    return {
        "number": line.number,
        "kind": line.kind.value,
        "text": line.text,
        "lyrics": line.lyrics,
        "section": line.section,
        "has_chords": line.has_chords,
        "segments": [
            {
                "text": segment.text,
                "chords": [
                    {"name": c.name, "alt": c.alt, "offset": c.offset}
                    for c in segment.chords
                ],
            }
            for segment in rendered.segments
        ],
        "directive": (
            _directive_dict(rendered.directive) if rendered.directive is not None else None
        ),
    }
