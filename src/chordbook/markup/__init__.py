"""Song markup: lexical conventions, chord grammar and parser."""

from chordbook.markup.chords import parse_chord
from chordbook.markup.parser import SongParser, parse_song
from chordbook.markup.syntax import MarkupSyntax

__all__ = ["MarkupSyntax", "SongParser", "parse_chord", "parse_song"]
