"""Base classes for build stages."""

from abc import ABC, abstractmethod
import time

from chordbook.models.pipeline import BuildContext, BuildState, StageResult


class BuildStage(ABC):
    """Abstract base class for build stages.

    Each stage implements execute() which receives a BuildContext,
    performs its work (mutating the context), and returns a StageResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this stage."""
        ...

    @property
    @abstractmethod
    def state(self) -> BuildState:
        """Build state the orchestrator is in while this stage runs."""
        ...

    @abstractmethod
    def execute(self, context: BuildContext) -> StageResult:
        """Execute this stage.

        Args:
            context: Mutable build context that accumulates results.

        Returns:
            StageResult indicating success/failure and any warnings.
        """
        ...

    def run(self, context: BuildContext) -> StageResult:
        """Run the stage with timing.

        This is the public entry point that wraps execute() with timing
        and error handling.
        """
        start_time = time.time()
        try:
            result = self.execute(context)
            result.duration_seconds = time.time() - start_time
            return result
        except Exception as e:
            return StageResult(
                success=False,
                stage_name=self.name,
                duration_seconds=time.time() - start_time,
                error_message=f"Unexpected error: {e}",
            )

    def _result(self, context: BuildContext, warnings: list[str], failed: int) -> StageResult:
        """Apply the failure policy to a stage that recorded ``failed`` items."""
        if context.cancelled:
            return StageResult(
                success=False,
                stage_name=self.name,
                duration_seconds=0,
                error_message=f"{failed} item(s) failed; stopped under fail-fast policy",
                warnings=warnings,
            )
        limit = context.manifest.max_failures
        if limit is not None and context.failure_count() > limit:
            return StageResult(
                success=False,
                stage_name=self.name,
                duration_seconds=0,
                error_message=(
                    f"{context.failure_count()} failures exceed the tolerance of {limit}"
                ),
                warnings=warnings,
            )
        return StageResult(
            success=True,
            stage_name=self.name,
            duration_seconds=0,
            warnings=warnings,
        )
