"""Pipeline processing models for Chordbook.

These models track state as a project moves through the build pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from chordbook.models.project import FailurePolicy, Manifest
from chordbook.models.song import SongDocument

if TYPE_CHECKING:
    from chordbook.render.context import CrossReferences


class BuildState(str, Enum):
    """Phases of one project build."""

    IDLE = "idle"
    COLLECTING = "collecting"
    PARSING = "parsing"
    INDEXING = "indexing"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SongSource:
    """Raw text of one manifest song, read once per build."""

    song_id: str
    path: Path
    text: str
    content_hash: str  # sha256 of the raw bytes


@dataclass(frozen=True)
class Artifact:
    """Rendered bytes for one (song or book, target) pair."""

    target: str
    filename: str
    data: bytes
    song_id: str | None = None  # None for a whole-book artifact
    reused: bool = False


@dataclass
class Outcome:
    """What happened to one song (target None) or one render."""

    song_id: str | None
    target: str | None
    status: Literal["ok", "reused", "failed", "skipped"]
    error: str | None = None

    @property
    def label(self) -> str:
        song = self.song_id or "<book>"
        return f"{song} @ {self.target}" if self.target else song


@dataclass
class BuildContext:
    """Mutable state passed through pipeline stages."""

    manifest: Manifest
    failure_policy: FailurePolicy
    max_workers: int

    # Collected sources (Collecting) - keyed by song id
    sources: dict[str, SongSource] = field(default_factory=dict)

    # Parsed documents (Parsing) - keyed by song id
    documents: dict[str, SongDocument] = field(default_factory=dict)

    # Cross-reference snapshots (Indexing) - keyed by ordered song id tuple
    xrefs: "dict[tuple[str, ...], CrossReferences]" = field(default_factory=dict)

    # Rendered artifacts (Rendering)
    artifacts: list[Artifact] = field(default_factory=list)

    # Render fingerprints of artifacts produced or reused by this build
    fingerprints: set[str] = field(default_factory=set)

    # Per-song and per-render outcomes, in the order they were decided
    outcomes: list[Outcome] = field(default_factory=list)

    # Set once fail-fast policy stops scheduling
    cancelled: bool = False

    # Counters for the build summary
    parsed: int = 0
    parse_reused: int = 0
    rendered: int = 0
    render_reused: int = 0

    def failed_songs(self) -> set[str]:
        return {
            o.song_id
            for o in self.outcomes
            if o.target is None and o.song_id is not None and o.status in ("failed", "skipped")
        }

    def failure_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")


@dataclass
class StageResult:
    """Result of a pipeline stage execution."""

    success: bool
    stage_name: str
    duration_seconds: float
    error_message: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class BuildResult:
    """Final result of the complete build."""

    state: BuildState
    history: list[BuildState] = field(default_factory=list)
    artifacts: list[Artifact] = field(default_factory=list)
    outcomes: list[Outcome] = field(default_factory=list)
    stages_completed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    parsed: int = 0
    parse_reused: int = 0
    rendered: int = 0
    render_reused: int = 0
    total_duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.state is BuildState.DONE

    def artifact(self, target: str, song_id: str | None = None) -> Artifact | None:
        for artifact in self.artifacts:
            if artifact.target == target and artifact.song_id == song_id:
                return artifact
        return None

    def failures(self) -> list[Outcome]:
        return [o for o in self.outcomes if o.status == "failed"]
