"""Song markup parser.

Turns the text of one song into a ``SongDocument``. Parsing is line by
line and purely in memory; errors abort the song with a ``ParseError`` (or
``MalformedChord``) carrying the 1-based line and column.
"""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import PurePath

from chordbook.errors import MalformedChord, ParseError, UnrecognizedNotation
from chordbook.markup.chords import parse_chord
from chordbook.markup.directives import REQUIRES_VALUE, canonical_name
from chordbook.markup.lexer import (
    DirectiveToken,
    TokenKind,
    classify,
    lex_directive,
    lex_lyrics,
)
from chordbook.markup.syntax import MarkupSyntax
from chordbook.models.pitch import Chord, NotationSystem, get_notation
from chordbook.models.song import (
    Directive,
    Line,
    LineKind,
    Placement,
    Section,
    Segment,
    SongDocument,
)


@dataclass
class _OpenSection:
    kind: str
    label: str | None
    start: int
    index: int
    number: int


@dataclass
class _ParseState:
    """Running state while walking the lines of one song."""

    notation: NotationSystem
    transpose: int = 0
    title: str | None = None
    key: Chord | None = None
    subtitles: list[str] = field(default_factory=list)
    lines: list[Line] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    section_counts: Counter[str] = field(default_factory=Counter)
    open_section: _OpenSection | None = None

    @property
    def section_index(self) -> int | None:
        return self.open_section.index if self.open_section else None


class SongParser:
    """Parser for one song source format.

    Args:
        syntax: Delimiters (defaults to ChordPro conventions).
        notation: Notation system chord markers are written in, unless a
            ``notation`` directive switches it.
    """

    def __init__(self, syntax: MarkupSyntax | None = None, notation: str = "english") -> None:
        self.syntax = syntax or MarkupSyntax()
        self.notation = get_notation(notation)

    def parse(self, text: str, song_id: str, source: str | None = None) -> SongDocument:
        """Parse a song.

        Raises:
            ParseError: On malformed directives or markers.
            MalformedChord: On a marker whose root is not a note.
        """
        state = _ParseState(notation=self.notation)
        try:
            for number, raw in enumerate(text.lstrip("\ufeff").splitlines(), start=1):
                state.lines.append(self._parse_line(raw, number, state))
        except ParseError as e:
            e.song_id = song_id
            raise

        if state.open_section is not None:
            last = state.lines[-1].number if state.lines else state.open_section.start
            self._close_section(state, last)

        return SongDocument(
            song_id=song_id,
            title=state.title or PurePath(song_id).name,
            lines=tuple(state.lines),
            subtitles=tuple(state.subtitles),
            key=state.key,
            directives=tuple(state.directives),
            sections=tuple(state.sections),
            notation=self.notation.name,
            source=source,
        )

    def _parse_line(self, raw: str, number: int, state: _ParseState) -> Line:
        kind = classify(raw, self.syntax)
        if kind is LineKind.DIRECTIVE:
            token = lex_directive(raw, number, self.syntax)
            return self._parse_directive(raw, token, number, state)

        segments = self._parse_lyrics(raw, number, state) if kind is LineKind.LYRIC else ()
        return Line(
            number=number,
            kind=kind,
            segments=segments,
            text=raw,
            section=state.section_index,
            transpose=state.transpose,
        )

    def _parse_lyrics(self, raw: str, number: int, state: _ParseState) -> tuple[Segment, ...]:
        segments: list[Segment] = []
        text = ""
        placements: list[Placement] = []
        offset = 0

        for token in lex_lyrics(raw, number, self.syntax):
            if token.kind is TokenKind.TEXT:
                text += token.text
                offset += len(token.text)
                continue
            if not token.text.strip():
                raise MalformedChord(number, token.column, token.text)
            chord = parse_chord(token.text, state.notation, number, token.column)
            if text:
                segments.append(Segment(text, tuple(placements)))
                text, placements = "", []
            placements.append(Placement(chord=chord, offset=offset, marker=token.text))

        if text or placements or not segments:
            segments.append(Segment(text, tuple(placements)))
        return tuple(segments)

    def _parse_directive(
        self,
        raw: str,
        token: DirectiveToken,
        number: int,
        state: _ParseState,
    ) -> Line:
        name = canonical_name(token.key)
        section = state.section_index

        if name is None:
            directive = Directive(
                name=token.key.lower(),
                key=token.key,
                value=token.value,
                raw=token.raw,
                known=False,
            )
        else:
            if name in REQUIRES_VALUE and not token.value:
                raise ParseError(number, token.column, f"Directive {name!r} requires a value")
            directive = Directive(name=name, key=token.key, value=token.value, raw=token.raw)
            directive, section = self._apply(directive, token, number, state, section)

        state.directives.append(directive)
        return Line(
            number=number,
            kind=LineKind.DIRECTIVE,
            directive=directive,
            text=raw,
            section=section,
            transpose=state.transpose,
        )

    def _apply(
        self,
        directive: Directive,
        token: DirectiveToken,
        number: int,
        state: _ParseState,
        section: int | None,
    ) -> tuple[Directive, int | None]:
        """Apply a known directive to the parse state."""
        name, value = directive.name, directive.value

        if name == "title" and state.title is None:
            state.title = value
        elif name == "subtitle":
            state.subtitles.append(value or "")
        elif name == "key":
            chord = parse_chord(value or "", state.notation, number, token.value_column)
            if state.key is None:
                state.key = chord
            directive = Directive(
                name=name, key=directive.key, value=value, raw=directive.raw, chord=chord
            )
        elif name == "transpose":
            try:
                state.transpose = int(value or "")
            except ValueError:
                raise ParseError(
                    number, token.value_column, f"Transposition must be an integer, got {value!r}"
                ) from None
        elif name == "notation":
            try:
                state.notation = get_notation(value or "")
            except UnrecognizedNotation as e:
                raise ParseError(number, token.value_column, str(e)) from None
        elif name == "chorus":
            directive = Directive(
                name=name,
                key=directive.key,
                value=value,
                raw=directive.raw,
                ref=self._find_chorus(state, value),
            )
        elif name.startswith("start_of_"):
            kind = name.removeprefix("start_of_")
            if state.open_section is not None:
                raise ParseError(
                    number,
                    token.column,
                    f"Cannot start a {kind} inside an open {state.open_section.kind}",
                )
            state.section_counts[kind] += 1
            state.open_section = _OpenSection(
                kind=kind,
                label=value or None,
                start=number,
                index=len(state.sections),
                number=state.section_counts[kind],
            )
            section = state.section_index
        elif name.startswith("end_of_"):
            kind = name.removeprefix("end_of_")
            if state.open_section is None or state.open_section.kind != kind:
                raise ParseError(number, token.column, f"No open {kind} to end")
            self._close_section(state, number)

        return directive, section

    @staticmethod
    def _close_section(state: _ParseState, last_line: int) -> None:
        assert state.open_section is not None
        opened = state.open_section
        state.sections.append(
            Section(
                kind=opened.kind,
                label=opened.label,
                start=opened.start,
                end=last_line,
                number=opened.number,
            )
        )
        state.open_section = None

    @staticmethod
    def _find_chorus(state: _ParseState, label: str | None) -> int | None:
        """Index of the chorus a reference points at.

        Without a value this is the latest chorus. A value names a chorus by
        label, or failing that by its number (``{chorus: 2}``).
        """
        choruses = [
            (index, section)
            for index, section in enumerate(state.sections)
            if section.kind == "chorus"
        ]
        for index, section in reversed(choruses):
            if not label or section.label == label:
                return index
        if label and label.strip().isdigit():
            wanted = int(label)
            for index, section in choruses:
                if section.number == wanted:
                    return index
        return None


def parse_song(
    text: str,
    song_id: str,
    syntax: MarkupSyntax | None = None,
    notation: str = "english",
) -> SongDocument:
    """Parse one song with a throwaway parser."""
    return SongParser(syntax, notation).parse(text, song_id)
