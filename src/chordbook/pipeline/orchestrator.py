"""Pipeline orchestrator for Chordbook."""

import os
import time
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from chordbook.config import Settings
from chordbook.models.pipeline import BuildContext, BuildResult, BuildState
from chordbook.models.project import Manifest, OutputFormat
from chordbook.pipeline.base import BuildStage
from chordbook.pipeline.cache import BuildCache
from chordbook.render.engines import TemplateEngine

console = Console()


class Pipeline:
    """Orchestrates the execution of build stages."""

    def __init__(
        self,
        stages: list[BuildStage],
        settings: Settings,
        cache: BuildCache | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            stages: Ordered list of stages to execute.
            settings: Application settings.
            cache: Cache shared with the stages, kept across builds.
        """
        self.stages = stages
        self.settings = settings
        self.cache = cache

    def run(self, manifest: Manifest) -> BuildResult:
        """Build every target of a project.

        Args:
            manifest: Validated project manifest.

        Returns:
            BuildResult with the final state, artifacts and outcomes.
        """
        start_time = time.time()

        context = BuildContext(
            manifest=manifest,
            failure_policy=manifest.failure_policy or self.settings.failure_policy,
            max_workers=self.settings.max_workers or os.cpu_count() or 1,
        )
        result = BuildResult(state=BuildState.IDLE, history=[BuildState.IDLE])
        show = self.settings.show_progress

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            disable=not show,
        ) as progress:
            for stage in self.stages:
                result.state = stage.state
                result.history.append(stage.state)
                task = progress.add_task(f"[cyan]{stage.name}[/cyan]...", total=None)

                stage_result = stage.run(context)

                progress.remove_task(task)
                result.warnings.extend(stage_result.warnings)

                if stage_result.success:
                    result.stages_completed.append(stage.name)
                    if show:
                        console.print(
                            f"  [green]{stage.name}[/green] "
                            f"({stage_result.duration_seconds:.1f}s)"
                        )
                else:
                    result.state = BuildState.FAILED
                    result.errors.append(f"{stage.name}: {stage_result.error_message}")
                    if show:
                        console.print(
                            f"  [red]{stage.name}[/red] failed: "
                            f"{escape(stage_result.error_message or '')}"
                        )
                    break

        if result.state is not BuildState.FAILED:
            result.state = BuildState.DONE
            if self.cache is not None:
                self.cache.retain(set(context.documents), context.fingerprints)
        result.history.append(result.state)

        order = {target.name: index for index, target in enumerate(manifest.targets)}
        result.artifacts = sorted(
            context.artifacts, key=lambda a: (order[a.target], a.filename)
        )
        result.outcomes = list(context.outcomes)
        result.parsed = context.parsed
        result.parse_reused = context.parse_reused
        result.rendered = context.rendered
        result.render_reused = context.render_reused
        result.total_duration = time.time() - start_time
        return result


def create_default_pipeline(
    settings: Settings,
    cache: BuildCache | None = None,
    engines: dict[OutputFormat, TemplateEngine] | None = None,
) -> Pipeline:
    """Create a pipeline with all default stages.

    Args:
        settings: Application settings.
        cache: Optional cache reused by successive builds of one process.
        engines: Template engines by output format, replacing the defaults.

    Returns:
        Configured Pipeline instance.
    """
    from chordbook.stages import CollectStage, IndexStage, ParseStage, RenderStage

    stages: list[BuildStage] = [
        CollectStage(settings),
        ParseStage(settings, cache),
        IndexStage(),
        RenderStage(settings, cache, engines),
    ]

    return Pipeline(stages, settings, cache)


def write_artifacts(result: BuildResult, output_dir: Path) -> list[Path]:
    """Write every artifact of a build under ``output_dir``.

    Returns:
        Paths written, in artifact order.
    """
    written = []
    root = output_dir.resolve()
    for artifact in result.artifacts:
        path = (root / artifact.filename).resolve()
        if not path.is_relative_to(root):
            raise ValueError(f"Artifact {artifact.filename!r} escapes {output_dir}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(artifact.data)
        written.append(path)
    return written
