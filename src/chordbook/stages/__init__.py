"""Build stages for Chordbook."""

from chordbook.stages.collect import CollectStage
from chordbook.stages.index import IndexStage
from chordbook.stages.parse import ParseStage
from chordbook.stages.render import RenderJob, RenderStage

__all__ = [
    "CollectStage",
    "IndexStage",
    "ParseStage",
    "RenderJob",
    "RenderStage",
]
