"""Chord grammar: ``root [extension] [/bass]``.

The root is the longest note spelling the notation system recognizes at
the start of the marker. Whatever follows is kept verbatim as the
extension, so qualities like ``maj7``, ``sus4`` or ``7(b9)`` pass through
untouched. A trailing ``/X`` is a slash bass only when ``X`` is a note;
otherwise it stays part of the extension (``6/9``).
"""

from chordbook.errors import MalformedChord
from chordbook.models.pitch import Chord, NotationSystem


def parse_chord(
    text: str,
    system: NotationSystem,
    line: int = 0,
    column: int = 0,
) -> Chord:
    """Parse a chord marker body.

    Raises:
        MalformedChord: If the text does not start with a note of ``system``.
    """
    body = text.strip()
    match = system.match_prefix(body)
    if match is None:
        raise MalformedChord(line, column, text)
    root, length = match
    rest = body[length:]

    bass = None
    head, slash, tail = rest.rpartition("/")
    if slash and tail:
        bass = system.lookup(tail)
        if bass is not None:
            rest = head

    return Chord(root=root, extension=rest, bass=bass)
