"""Parse stage - turns song sources into documents, in parallel."""

import hashlib
from dataclasses import replace

from chordbook import __version__
from chordbook.config import Settings
from chordbook.errors import ChordbookError
from chordbook.markup.parser import SongParser
from chordbook.markup.syntax import MarkupSyntax
from chordbook.models.pipeline import BuildContext, BuildState, Outcome, SongSource, StageResult
from chordbook.models.song import SongDocument
from chordbook.pipeline.base import BuildStage
from chordbook.pipeline.cache import BuildCache
from chordbook.pipeline.pool import run_bounded


class ParseStage(BuildStage):
    """Stage 2: Parse.

    Parses every collected song exactly once, however many targets use it.
    Songs are independent, so they are parsed concurrently in a bounded
    worker pool. A document from an earlier build is reused when the
    song's content hash and the parser configuration are unchanged.
    """

    def __init__(self, settings: Settings, cache: BuildCache | None = None) -> None:
        self.settings = settings
        self.cache = cache
        self.syntax = MarkupSyntax.from_settings(settings)
        self.parser = SongParser(self.syntax, settings.default_notation)

    @property
    def name(self) -> str:
        return "parse"

    @property
    def state(self) -> BuildState:
        return BuildState.PARSING

    def parse_key(self, source: SongSource) -> str:
        """Digest of everything a parse result depends on."""
        payload = "\0".join(
            [source.content_hash, repr(self.syntax), self.parser.notation.name, __version__]
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def execute(self, context: BuildContext) -> StageResult:
        """Parse all sources, reusing cached documents where possible."""
        warnings: list[str] = []
        outcomes: dict[str, Outcome] = {}
        pending: list[SongSource] = []

        for source in context.sources.values():
            cached = None
            if self.cache is not None:
                cached = self.cache.document(source.song_id, self.parse_key(source))
            if cached is not None:
                context.documents[source.song_id] = cached
                context.parse_reused += 1
                outcomes[source.song_id] = Outcome(source.song_id, None, "reused")
            else:
                pending.append(source)

        failed = 0

        def on_done(index: int, document: SongDocument | None, error: BaseException | None) -> bool:
            nonlocal failed
            source = pending[index]
            if error is None and document is not None:
                context.documents[source.song_id] = document
                context.parsed += 1
                outcomes[source.song_id] = Outcome(source.song_id, None, "ok")
                if self.cache is not None:
                    self.cache.store_document(source.song_id, self.parse_key(source), document)
                return True

            failed += 1
            if isinstance(error, ChordbookError):
                message = str(error)
            else:
                message = f"Unexpected error: {error}"
            outcomes[source.song_id] = Outcome(source.song_id, None, "failed", message)
            warnings.append(f"{source.song_id}: {message}")
            return context.failure_policy != "fail-fast"

        scheduled = run_bounded(pending, self._parse, context.max_workers, on_done)

        for index, source in enumerate(pending):
            if index not in scheduled:
                outcomes[source.song_id] = Outcome(
                    source.song_id, None, "skipped", "not parsed after an earlier failure"
                )

        # Manifest order, whatever order the workers finished in
        context.outcomes.extend(outcomes[song_id] for song_id in context.sources)

        if failed and context.failure_policy == "fail-fast":
            context.cancelled = True
        return self._result(context, warnings, failed)

    def _parse(self, source: SongSource) -> SongDocument:
        document = self.parser.parse(source.text, source.song_id, str(source.path))
        return replace(document, content_hash=source.content_hash)
