"""Build pipeline for Chordbook."""

from chordbook.pipeline.base import BuildStage
from chordbook.pipeline.cache import BuildCache
from chordbook.pipeline.orchestrator import Pipeline, create_default_pipeline, write_artifacts

__all__ = ["BuildCache", "BuildStage", "Pipeline", "create_default_pipeline", "write_artifacts"]
