"""Index stage - build-wide cross references."""

from chordbook.models.pipeline import BuildContext, BuildState, StageResult
from chordbook.pipeline.base import BuildStage
from chordbook.render.context import CrossReferences


class IndexStage(BuildStage):
    """Stage 3: Index.

    Computes song numbering, table of contents and alphabetical index once,
    after every song is parsed and before any render starts. Targets that
    render the same ordered song set share one snapshot.
    """

    @property
    def name(self) -> str:
        return "index"

    @property
    def state(self) -> BuildState:
        return BuildState.INDEXING

    def execute(self, context: BuildContext) -> StageResult:
        manifest = context.manifest
        for target in manifest.targets:
            song_ids = tuple(
                song for song in manifest.target_songs(target) if song in context.documents
            )
            if song_ids not in context.xrefs:
                context.xrefs[song_ids] = CrossReferences.compute(
                    [context.documents[song] for song in song_ids]
                )

        return StageResult(
            success=True,
            stage_name=self.name,
            duration_seconds=0,
        )
