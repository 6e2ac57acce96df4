"""Pytest fixtures for Chordbook tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from chordbook.config import Settings
from chordbook.markup import SongParser
from chordbook.models.project import Manifest
from chordbook.models.song import SongDocument

AMAZING = """\
{title: Amazing Grace}
{subtitle: Traditional}
{artist: John Newton}
{key: G}
# first verse only

{start_of_verse}
[G]Amazing [C]grace, how [G]sweet the sound
{end_of_verse}
{soc: Refrain}
[D]That saved a [G]wretch like me
{eoc}
{chorus: Refrain}
{custom: foo}
"""

BLUES = """\
{title: Bright Blues}
{key: A}
[A7]Woke up this [D7]morning
[E7]blues all a[A7]round
"""

WALTZ = """\
{t: Autumn Waltz}
{artist: Anon}
[Dm]Leaves are [Gm]falling, [A7]slowly
"""

BROKEN = """\
{title: Broken}
[Xq]this marker is not a chord
"""


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, without progress output."""
    return Settings(
        _env_file=None,
        show_progress=False,
        max_workers=2,
        template_dir=tmp_path / "templates",
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def parser() -> SongParser:
    """Parser with default ChordPro syntax and english notation."""
    return SongParser()


@pytest.fixture
def amazing(parser: SongParser) -> SongDocument:
    """A parsed song with metadata, sections and an unknown directive."""
    return parser.parse(AMAZING, "songs/amazing")


@pytest.fixture
def write_songs(tmp_path: Path) -> Callable[..., list[str]]:
    """Return a helper writing songs under ``tmp_path/songs``."""

    def write(**songs: str) -> list[str]:
        songs_dir = tmp_path / "songs"
        songs_dir.mkdir(exist_ok=True)
        paths = []
        for name, text in songs.items():
            (songs_dir / f"{name}.cho").write_text(text, encoding="utf-8")
            paths.append(f"songs/{name}.cho")
        return paths

    return write


@pytest.fixture
def make_manifest(tmp_path: Path) -> Callable[..., Manifest]:
    """Return a helper building a manifest rooted at ``tmp_path``."""

    def make(songs: list[str], targets: list[dict] | None = None, **extra: object) -> Manifest:
        data = {
            "songs": songs,
            "targets": targets
            or [
                {"name": "web", "file": "book.html"},
                {"name": "data", "format": "json", "mode": "song"},
            ],
            "book": {"title": "Test Book"},
            **extra,
        }
        return Manifest.from_mapping(data, base_dir=tmp_path)

    return make


@pytest.fixture
def project(write_songs, make_manifest) -> Manifest:
    """A three-song project with a book target and a per-song JSON target."""
    paths = write_songs(amazing=AMAZING, blues=BLUES, waltz=WALTZ)
    return make_manifest(paths)


@pytest.fixture
def documents(parser: SongParser, amazing: SongDocument) -> list[SongDocument]:
    """Three parsed songs in manifest order."""
    return [
        amazing,
        parser.parse(BLUES, "songs/blues"),
        parser.parse(WALTZ, "songs/waltz"),
    ]


@pytest.fixture
def broken_song() -> str:
    """Source of a song with a malformed chord on line 2."""
    return BROKEN
