"""Render context builder.

Assembles the data tree one template invocation sees: the derived song
view(s), the target configuration, project metadata and the build-wide
cross references. Every call returns fresh containers, so templates and
engines can never leak state into another target's context.
"""

import copy
import hashlib
import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from chordbook import __version__
from chordbook.models.pitch import get_notation
from chordbook.models.project import OutputTarget
from chordbook.models.song import SongDocument

PROGRAM = {"name": "chordbook", "version": __version__}


@dataclass(frozen=True)
class TocEntry:
    """One table-of-contents line."""

    number: int
    song_id: str
    title: str
    subtitles: tuple[str, ...]
    artist: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "id": self.song_id,
            "title": self.title,
            "subtitles": list(self.subtitles),
            "artist": self.artist,
        }


@dataclass(frozen=True)
class CrossReferences:
    """Song numbering and table of contents for one ordered song set.

    Computed once per build, before rendering starts, and only read after
    that. Targets sharing the same song set share the same instance.
    """

    entries: tuple[TocEntry, ...]

    @classmethod
    def compute(cls, documents: Sequence[SongDocument]) -> "CrossReferences":
        return cls(
            entries=tuple(
                TocEntry(
                    number=number,
                    song_id=doc.song_id,
                    title=doc.title,
                    subtitles=doc.subtitles,
                    artist=doc.artist,
                )
                for number, doc in enumerate(documents, start=1)
            )
        )

    @property
    def song_ids(self) -> tuple[str, ...]:
        return tuple(entry.song_id for entry in self.entries)

    def number(self, song_id: str) -> int:
        for entry in self.entries:
            if entry.song_id == song_id:
                return entry.number
        raise KeyError(song_id)

    def toc(self) -> list[dict[str, Any]]:
        """Entries in song order."""
        return [entry.to_dict() for entry in self.entries]

    def index(self) -> list[dict[str, Any]]:
        """Entries sorted alphabetically by title."""
        ordered = sorted(self.entries, key=lambda e: (e.title.casefold(), e.number))
        return [entry.to_dict() for entry in ordered]

    def digest(self) -> str:
        payload = json.dumps(self.toc(), sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def output_dict(target: OutputTarget) -> dict[str, Any]:
    """Target configuration as seen by templates."""
    data = target.model_dump(mode="json")
    data["format"] = target.output_format.value
    data["template"] = target.template_id
    return data


def song_tree(document: SongDocument, target: OutputTarget, xrefs: CrossReferences) -> dict:
    """Derived view of one song for one target, numbered by the snapshot."""
    alt = get_notation(target.alt_notation) if target.alt_notation else None
    view = document.with_transposition(
        target.semitones_for(document.song_id),
        get_notation(target.notation),
        alt,
    )
    tree = view.to_dict()
    tree["number"] = xrefs.number(document.song_id)
    return tree


def _shared(
    target: OutputTarget,
    xrefs: CrossReferences,
    book: dict[str, Any] | None,
    program: dict[str, Any] | None,
) -> dict[str, Any]:
    return {
        "toc": xrefs.toc(),
        "index": xrefs.index(),
        "book": copy.deepcopy(book or {}),
        "output": output_dict(target),
        "program": dict(program or PROGRAM),
    }


def build_song_context(
    document: SongDocument,
    target: OutputTarget,
    xrefs: CrossReferences,
    book: dict[str, Any] | None = None,
    program: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Data tree for rendering one song with one target."""
    song = song_tree(document, target, xrefs)
    return {"song": song, "number": song["number"], **_shared(target, xrefs, book, program)}


def build_book_context(
    documents: Sequence[SongDocument],
    target: OutputTarget,
    xrefs: CrossReferences,
    book: dict[str, Any] | None = None,
    program: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Data tree for rendering a whole songbook with one target."""
    songs = [song_tree(document, target, xrefs) for document in documents]
    return {"songs": songs, **_shared(target, xrefs, book, program)}
