"""Error taxonomy for Chordbook.

Parse-time errors carry their source location so that a build summary can
point at the offending line. Every error raised inside the pipeline is
attributed to a song and/or an output target by the stage that catches it.
"""


class ChordbookError(Exception):
    """Base class for all Chordbook errors."""


class UnrecognizedPitch(ChordbookError, ValueError):
    """A note spelling is not known to the requested notation system."""

    def __init__(self, text: str, notation: str) -> None:
        self.text = text
        self.notation = notation
        super().__init__(f"Unrecognized pitch {text!r} in notation {notation!r}")


class UnrecognizedNotation(ChordbookError, ValueError):
    """A notation system name is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown notation system: {name!r}")


class ParseError(ChordbookError):
    """Malformed song markup, located by 1-based line and column."""

    def __init__(
        self,
        line: int,
        column: int,
        reason: str,
        song_id: str | None = None,
    ) -> None:
        self.line = line
        self.column = column
        self.reason = reason
        self.song_id = song_id
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f"{self.song_id}:" if self.song_id else ""
        return f"{where}{self.line}:{self.column}: {self.reason}"


class MalformedChord(ParseError):
    """A chord marker whose root is not a recognizable note."""

    def __init__(
        self,
        line: int,
        column: int,
        chord: str,
        song_id: str | None = None,
    ) -> None:
        self.chord = chord
        super().__init__(line, column, f"Malformed chord: {chord!r}", song_id)


class TemplateError(ChordbookError):
    """The template engine failed to render a data tree."""

    def __init__(self, template_id: str, message: str) -> None:
        self.template_id = template_id
        self.message = message
        super().__init__(f"Error in template {template_id!r}: {message}")


class ManifestError(ChordbookError):
    """A structurally invalid manifest, target or song reference."""
