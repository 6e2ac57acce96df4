"""Song document model.

These models are produced by the markup parser and consumed by the render
context builder. They are frozen once parsed; transposition and notation
changes produce a separate view (see ``chordbook.models.view``).
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from chordbook.models.pitch import Chord

if TYPE_CHECKING:
    from chordbook.models.pitch import NotationSystem
    from chordbook.models.view import RenderableSong


class LineKind(str, Enum):
    """What a source line holds."""

    LYRIC = "lyric"
    DIRECTIVE = "directive"
    COMMENT = "comment"
    BLANK = "blank"


@dataclass(frozen=True)
class Placement:
    """A chord anchored at a character offset of the lyric text."""

    chord: Chord
    offset: int
    marker: str  # marker text as written, e.g. "Am7/G"


@dataclass(frozen=True)
class Segment:
    """A run of lyric text, preceded by the chords placed at its start."""

    text: str
    placements: tuple[Placement, ...] = ()


@dataclass(frozen=True)
class Directive:
    """A ``{name: value}`` annotation.

    ``name`` is canonical (lower case, aliases resolved) for known
    directives and the lower-cased key for unknown ones. ``key`` and ``raw``
    keep the text as written.
    """

    name: str
    key: str
    value: str | None
    raw: str
    known: bool = True
    chord: Chord | None = None  # parsed value of a "key" directive
    ref: int | None = None  # section index a "chorus" reference points at


@dataclass(frozen=True)
class Section:
    """A line range opened and closed by section directives.

    Sections of each kind are numbered from 1 in document order, whatever
    label the author gave them.
    """

    kind: str  # "chorus", "verse" or "bridge"
    label: str | None
    start: int  # first line number (inclusive)
    end: int  # last line number (inclusive)
    number: int = 1  # running count among sections of the same kind


@dataclass(frozen=True)
class Line:
    """One source line."""

    number: int  # 1-based source line number
    kind: LineKind
    segments: tuple[Segment, ...] = ()
    directive: Directive | None = None
    text: str = ""  # source line as written
    section: int | None = None  # index into SongDocument.sections
    transpose: int = 0  # in-song transposition in force on this line

    @property
    def lyrics(self) -> str:
        """Lyric text with chord markers removed."""
        return "".join(segment.text for segment in self.segments)

    @property
    def placements(self) -> Iterator[Placement]:
        for segment in self.segments:
            yield from segment.placements

    @property
    def has_chords(self) -> bool:
        return any(segment.placements for segment in self.segments)


# Directives whose value describes the whole song
SONG_METADATA = (
    "title",
    "subtitle",
    "artist",
    "composer",
    "lyricist",
    "album",
    "year",
    "key",
    "capo",
    "tempo",
    "time",
)


@dataclass(frozen=True)
class SongDocument:
    """A parsed song. Immutable; derive views with ``with_transposition``."""

    song_id: str
    title: str
    lines: tuple[Line, ...] = ()
    subtitles: tuple[str, ...] = ()
    key: Chord | None = None
    directives: tuple[Directive, ...] = ()
    sections: tuple[Section, ...] = ()
    notation: str = "english"
    source: str | None = None
    content_hash: str = field(default="", compare=False)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def metadata(self) -> dict[str, str]:
        """Song-scoped directive values; the first occurrence wins."""
        meta: dict[str, str] = {}
        for directive in self.directives:
            if directive.name in SONG_METADATA and directive.name != "subtitle":
                if directive.value is not None:
                    meta.setdefault(directive.name, directive.value)
        return meta

    @property
    def artist(self) -> str | None:
        return self.metadata.get("artist")

    @property
    def opaque_directives(self) -> tuple[Directive, ...]:
        return tuple(d for d in self.directives if not d.known)

    def chords(self) -> Iterator[Chord]:
        """All chords in document order."""
        for line in self.lines:
            for placement in line.placements:
                yield placement.chord

    def with_transposition(
        self,
        semitones: int,
        notation: "NotationSystem",
        alt_notation: "NotationSystem | None" = None,
    ) -> "RenderableSong":
        """Derive a transposed, spelled view without touching this document."""
        from chordbook.models.view import RenderableSong

        return RenderableSong.derive(self, semitones, notation, alt_notation)
