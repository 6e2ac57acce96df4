"""Render stage - template rendering for every (song or book, target) pair."""

import hashlib
import json
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from chordbook import __version__
from chordbook.config import Settings
from chordbook.errors import ChordbookError
from chordbook.models.pipeline import Artifact, BuildContext, BuildState, Outcome, StageResult
from chordbook.models.project import OutputFormat, OutputTarget
from chordbook.models.song import SongDocument
from chordbook.pipeline.base import BuildStage
from chordbook.pipeline.cache import BuildCache
from chordbook.pipeline.pool import run_bounded
from chordbook.render.context import CrossReferences, build_book_context, build_song_context
from chordbook.render.engines import TemplateEngine, create_engine

# Settings that change what a parsed song looks like
_PARSE_SETTINGS = {
    "default_notation",
    "directive_open",
    "directive_close",
    "chord_open",
    "chord_close",
    "comment_prefix",
    "encoding",
}


@dataclass(frozen=True)
class RenderJob:
    """One template invocation: a song (song mode) or a book, for a target."""

    target: OutputTarget
    song_id: str | None
    documents: tuple[SongDocument, ...]
    xrefs: CrossReferences
    book: dict[str, Any]
    engine: TemplateEngine
    fingerprint: str | None

    @property
    def filename(self) -> str:
        return self.target.artifact_name(self.song_id)


class RenderStage(BuildStage):
    """Stage 4: Render.

    - Expands targets into render jobs (per song, or one per book)
    - Reuses cached bytes when a job's fingerprint is unchanged
    - Renders the rest concurrently in a bounded worker pool

    Engines are created per output format unless injected.
    """

    def __init__(
        self,
        settings: Settings,
        cache: BuildCache | None = None,
        engines: dict[OutputFormat, TemplateEngine] | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.engines = dict(engines or {})

    @property
    def name(self) -> str:
        return "render"

    @property
    def state(self) -> BuildState:
        return BuildState.RENDERING

    def execute(self, context: BuildContext) -> StageResult:
        """Render every job, honouring the per-target failure policy."""
        warnings: list[str] = []
        outcomes: dict[int, Outcome] = {}
        artifacts: dict[int, Artifact] = {}
        jobs: list[RenderJob] = []
        positions: list[int] = []

        # Fresh engines per build so template edits between builds are seen
        engines = dict(self.engines)
        for position, (target, song_id, job) in enumerate(self._plan(context, engines)):
            if job is None:
                outcomes[position] = Outcome(
                    song_id, target.name, "skipped", "song was not parsed"
                )
                continue
            cached = self.cache.artifact(job.fingerprint) if self.cache else None
            if cached is not None and job.fingerprint is not None:
                artifacts[position] = Artifact(
                    target.name, job.filename, cached, song_id, reused=True
                )
                outcomes[position] = Outcome(song_id, target.name, "reused")
                context.fingerprints.add(job.fingerprint)
                context.render_reused += 1
            else:
                jobs.append(job)
                positions.append(position)

        failed = 0

        def on_done(index: int, data: bytes | None, error: BaseException | None) -> bool:
            nonlocal failed
            job, position = jobs[index], positions[index]
            if error is None and data is not None:
                artifacts[position] = Artifact(job.target.name, job.filename, data, job.song_id)
                outcomes[position] = Outcome(job.song_id, job.target.name, "ok")
                context.rendered += 1
                if job.fingerprint is not None:
                    context.fingerprints.add(job.fingerprint)
                if self.cache is not None:
                    self.cache.store_artifact(job.fingerprint, data)
                return True

            failed += 1
            if isinstance(error, ChordbookError):
                message = str(error)
            else:
                message = f"Unexpected error: {error}"
            outcome = Outcome(job.song_id, job.target.name, "failed", message)
            outcomes[position] = outcome
            warnings.append(f"{outcome.label}: {message}")
            policy = context.manifest.policy_for(job.target, context.failure_policy)
            if policy == "fail-fast":
                context.cancelled = True
                return False
            return True

        scheduled = run_bounded(jobs, self._render, context.max_workers, on_done)

        for index, job in enumerate(jobs):
            if index not in scheduled:
                outcomes[positions[index]] = Outcome(
                    job.song_id, job.target.name, "skipped", "not rendered after an earlier failure"
                )

        context.outcomes.extend(outcomes[position] for position in sorted(outcomes))
        context.artifacts.extend(artifacts[position] for position in sorted(artifacts))
        return self._result(context, warnings, failed)

    def _plan(
        self, context: BuildContext, engines: dict[OutputFormat, TemplateEngine]
    ) -> Iterator[tuple[OutputTarget, str | None, RenderJob | None]]:
        """Yield (target, song id, job) in target order; job is None for unparsed songs."""
        manifest = context.manifest
        book = manifest.book
        digests: dict[tuple[OutputFormat, str], str | None] = {}

        for target in manifest.targets:
            engine = self._engine(engines, target.output_format, manifest.base_dir)
            key = (target.output_format, target.template_id)
            if key not in digests:
                digests[key] = engine.digest(target.template_id)

            wanted = manifest.target_songs(target)
            available = tuple(song for song in wanted if song in context.documents)
            xrefs = context.xrefs[available]

            if target.mode == "book":
                fingerprint = self._fingerprint(context, target, available, xrefs, digests[key])
                documents = tuple(context.documents[song] for song in available)
                yield target, None, RenderJob(
                    target, None, documents, xrefs, book, engine, fingerprint
                )
                continue

            for song_id in wanted:
                if song_id not in context.documents:
                    yield target, song_id, None
                    continue
                fingerprint = self._fingerprint(context, target, (song_id,), xrefs, digests[key])
                documents = (context.documents[song_id],)
                yield target, song_id, RenderJob(
                    target, song_id, documents, xrefs, book, engine, fingerprint
                )

    def _engine(
        self,
        engines: dict[OutputFormat, TemplateEngine],
        output_format: OutputFormat,
        base_dir: Path,
    ) -> TemplateEngine:
        if output_format not in engines:
            template_dir = self.settings.template_dir
            if not template_dir.is_absolute():
                template_dir = base_dir / template_dir
            engines[output_format] = create_engine(output_format, template_dir)
        return engines[output_format]

    def _fingerprint(
        self,
        context: BuildContext,
        target: OutputTarget,
        song_ids: tuple[str, ...],
        xrefs: CrossReferences,
        template_digest: str | None,
    ) -> str | None:
        """Digest of every input of one render; None when it cannot be known."""
        if template_digest is None:
            return None
        payload = {
            "target": target.model_dump(mode="json"),
            "songs": [[song, context.documents[song].content_hash] for song in song_ids],
            "xrefs": xrefs.digest(),
            "book": context.manifest.book,
            "settings": self.settings.model_dump(mode="json", include=_PARSE_SETTINGS),
            "template": template_digest,
            "version": __version__,
        }
        text = json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def _render(self, job: RenderJob) -> bytes:
        return job.engine.render(job.target.template_id, self._context_for(job))

    def _context_for(self, job: RenderJob) -> dict[str, Any]:
        if job.song_id is None:
            return build_book_context(job.documents, job.target, job.xrefs, job.book)
        return build_song_context(job.documents[0], job.target, job.xrefs, job.book)
