"""Line-level tokenizer for song sources."""

from dataclasses import dataclass
from enum import Enum

from chordbook.errors import ParseError
from chordbook.markup.syntax import MarkupSyntax
from chordbook.models.song import LineKind


class TokenKind(str, Enum):
    TEXT = "text"
    CHORD = "chord"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str  # lyric text, or the marker body for chords
    column: int  # 1-based column of the token in the source line


@dataclass(frozen=True)
class DirectiveToken:
    key: str
    value: str | None
    raw: str  # text between the delimiters, stripped
    column: int  # 1-based column of the opener
    value_column: int  # 1-based column of the value (or the key)


def classify(text: str, syntax: MarkupSyntax) -> LineKind:
    """Decide the kind of a source line."""
    stripped = text.strip()
    if not stripped:
        return LineKind.BLANK
    if stripped.startswith(syntax.directive_open):
        return LineKind.DIRECTIVE
    if syntax.comment_prefix and stripped.startswith(syntax.comment_prefix):
        return LineKind.COMMENT
    return LineKind.LYRIC


def lex_directive(text: str, number: int, syntax: MarkupSyntax) -> DirectiveToken:
    """Split a directive line into key and value."""
    start = text.index(syntax.directive_open)
    end = text.rstrip().rfind(syntax.directive_close)
    if end < start + len(syntax.directive_open) or text.rstrip()[end:] != syntax.directive_close:
        raise ParseError(
            number,
            start + 1,
            f"Directive is not closed with {syntax.directive_close!r}",
        )

    body_start = start + len(syntax.directive_open)
    body = text[body_start:end]
    raw = body.strip()
    key, separator, value = body.partition(syntax.directive_separator)
    if not key.strip():
        raise ParseError(number, start + 1, "Directive has no name")

    value_column = body_start + len(body) - len(body.lstrip()) + 1
    if separator:
        value_offset = body_start + len(key) + len(separator)
        value_column = value_offset + len(value) - len(value.lstrip()) + 1

    return DirectiveToken(
        key=key.strip(),
        value=value.strip() if separator else None,
        raw=raw,
        column=start + 1,
        value_column=value_column,
    )


def lex_lyrics(text: str, number: int, syntax: MarkupSyntax) -> list[Token]:
    """Split a lyric line into text runs and chord markers.

    A closer outside a marker is ordinary text. An opener without a closer,
    or a second opener inside a marker, is an error.
    """
    tokens: list[Token] = []
    opener, closer = syntax.chord_open, syntax.chord_close
    pos = 0
    while pos < len(text):
        start = text.find(opener, pos)
        if start == -1:
            tokens.append(Token(TokenKind.TEXT, text[pos:], pos + 1))
            break
        if start > pos:
            tokens.append(Token(TokenKind.TEXT, text[pos:start], pos + 1))

        body_start = start + len(opener)
        end = text.find(closer, body_start)
        if end == -1:
            raise ParseError(number, start + 1, f"Chord marker is not closed with {closer!r}")
        nested = text.find(opener, body_start, end)
        if nested != -1:
            raise ParseError(number, nested + 1, "Chord marker opened inside another marker")

        tokens.append(Token(TokenKind.CHORD, text[body_start:end], start + 1))
        pos = end + len(closer)
    return tokens
