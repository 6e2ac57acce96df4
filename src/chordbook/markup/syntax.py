"""Lexical conventions of the song source format."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chordbook.config import Settings


@dataclass(frozen=True)
class MarkupSyntax:
    """Delimiters of directives, chord markers and comments.

    Defaults follow ChordPro: ``{key: value}`` directive lines, ``[Am]``
    chord markers and ``#`` comment lines.
    """

    directive_open: str = "{"
    directive_close: str = "}"
    directive_separator: str = ":"
    chord_open: str = "["
    chord_close: str = "]"
    comment_prefix: str = "#"

    def __post_init__(self) -> None:
        for name in ("directive_open", "directive_close", "chord_open", "chord_close"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")
        if self.chord_open == self.chord_close:
            raise ValueError("chord_open and chord_close must differ")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "MarkupSyntax":
        return cls(
            directive_open=settings.directive_open,
            directive_close=settings.directive_close,
            chord_open=settings.chord_open,
            chord_close=settings.chord_close,
            comment_prefix=settings.comment_prefix,
        )
