"""Rendering: context building and template engines."""

from chordbook.render.context import (
    CrossReferences,
    build_book_context,
    build_song_context,
)
from chordbook.render.engines import (
    JinjaTemplateEngine,
    JsonEngine,
    TemplateEngine,
    create_engine,
)

__all__ = [
    "CrossReferences",
    "JinjaTemplateEngine",
    "JsonEngine",
    "TemplateEngine",
    "build_book_context",
    "build_song_context",
    "create_engine",
]
