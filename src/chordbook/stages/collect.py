"""Collect stage - reads every manifest song once."""

import hashlib

from chordbook.config import Settings
from chordbook.models.pipeline import BuildContext, BuildState, Outcome, SongSource, StageResult
from chordbook.models.project import song_id_for
from chordbook.pipeline.base import BuildStage


class CollectStage(BuildStage):
    """Stage 1: Collect.

    - Resolves manifest song paths against the manifest directory
    - Reads each file once and records its SHA-256 content hash
    - Assigns the stable song id (manifest path without suffix)

    A song that cannot be read is a failure attributed to that song.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def name(self) -> str:
        return "collect"

    @property
    def state(self) -> BuildState:
        return BuildState.COLLECTING

    def execute(self, context: BuildContext) -> StageResult:
        """Read all song sources."""
        warnings: list[str] = []
        failed = 0
        manifest = context.manifest

        for path in manifest.songs:
            song_id = song_id_for(path)
            if context.cancelled:
                context.outcomes.append(
                    Outcome(song_id, None, "skipped", "not read after an earlier failure")
                )
                continue

            resolved = manifest.resolve(path)
            try:
                raw = resolved.read_bytes()
                text = raw.decode(self.settings.encoding)
            except (OSError, UnicodeDecodeError) as e:
                failed += 1
                message = f"Cannot read song {resolved}: {e}"
                context.outcomes.append(Outcome(song_id, None, "failed", message))
                warnings.append(f"{song_id}: {message}")
                if context.failure_policy == "fail-fast":
                    context.cancelled = True
                continue

            context.sources[song_id] = SongSource(
                song_id=song_id,
                path=resolved,
                text=text,
                content_hash=hashlib.sha256(raw).hexdigest(),
            )

        return self._result(context, warnings, failed)
