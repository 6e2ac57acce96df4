"""Command line interface for Chordbook."""
