"""Chordbook - compile chord-annotated song sheets into songbooks."""

__version__ = "0.1.0"
