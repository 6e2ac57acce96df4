"""Manifest file loading.

Reads a project manifest from TOML or JSON. Song entries may be glob
patterns relative to the manifest's directory; each pattern expands to
the matching files in sorted order.
"""

import json
import tomllib
from pathlib import Path
from typing import Any

from chordbook.errors import ManifestError
from chordbook.models.project import Manifest

_GLOB_CHARS = set("*?[")


def expand_songs(entries: list[Any], base_dir: Path) -> list[str]:
    """Expand glob patterns among song entries, keeping their order."""
    songs: list[str] = []
    for entry in entries:
        if not isinstance(entry, str):
            raise ManifestError(f"Song entries must be paths, got {entry!r}")
        if not _GLOB_CHARS & set(entry):
            songs.append(entry)
            continue
        matches = sorted(
            path.relative_to(base_dir).as_posix()
            for path in base_dir.glob(entry)
            if path.is_file()
        )
        if not matches:
            raise ManifestError(f"Song pattern {entry!r} matches no files")
        songs.extend(song for song in matches if song not in songs)
    return songs


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest file.

    Raises:
        ManifestError: If the file cannot be read or is invalid.
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw.decode("utf-8"))
        else:
            data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ManifestError(f"Cannot parse manifest {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} must contain a table/object")

    base_dir = path.parent
    data = dict(data)
    data["songs"] = expand_songs(list(data.get("songs", [])), base_dir)
    return Manifest.from_mapping(data, base_dir=base_dir)
