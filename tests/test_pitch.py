"""Tests for the pitch model."""

import itertools

import pytest

from chordbook.errors import UnrecognizedNotation, UnrecognizedPitch
from chordbook.models.pitch import (
    ENGLISH,
    NOTATIONS,
    Chord,
    Note,
    Spelling,
    get_notation,
    key_spelling,
    parse_note,
    spell,
    spell_chord,
    transpose,
)


class TestNote:
    """Tests for Note."""

    def test_pitch_class_normalized(self):
        """Pitch classes wrap modulo 12."""
        assert Note(13).pitch_class == 1
        assert Note(-1) == Note(11)

    def test_spelling_ignored_by_equality(self):
        """C# and Db are the same note."""
        assert Note(1, Spelling.SHARP) == Note(1, Spelling.FLAT)

    def test_transposition_is_a_group_action(self):
        """Shifting by a then b equals shifting by a + b; zero is identity."""
        for pc, a, b in itertools.product(range(12), range(-13, 14, 5), range(-25, 26, 7)):
            note = Note(pc)
            assert transpose(transpose(note, a), b) == transpose(note, a + b)
            assert transpose(note, 0) == note
            assert transpose(note, 12) == note

    def test_transposition_keeps_spelling(self):
        """A flat-spelled note stays flat-spelled."""
        assert Note(10, Spelling.FLAT).transposed(2).spelling is Spelling.FLAT


class TestChord:
    """Tests for Chord."""

    def test_transposes_root_and_bass(self):
        """Root and slash bass move together; the extension is untouched."""
        chord = Chord(Note(9), "m7", Note(7))
        assert chord.transposed(2) == Chord(Note(11), "m7", Note(9))

    def test_group_action(self):
        """Chords follow the same group law as notes."""
        chord = Chord(Note(4), "sus4", Note(11))
        for a, b in itertools.product(range(-12, 13, 5), range(-7, 8, 3)):
            assert transpose(transpose(chord, a), b) == transpose(chord, a + b)

    def test_is_minor(self):
        """Minor is read from the extension prefix."""
        assert Chord(Note(9), "m7").is_minor
        assert Chord(Note(9), "-").is_minor
        assert not Chord(Note(9), "maj7").is_minor
        assert not Chord(Note(9)).is_minor

    def test_str_uses_english(self):
        """String form is the english spelling."""
        assert str(Chord(Note(9), "m7", Note(7))) == "Am7/G"


class TestNotationSystems:
    """Tests for notation system spelling and parsing."""

    def test_round_trip_all_systems(self):
        """Parsing a spelled note gives the note back, in every system."""
        for system in NOTATIONS.values():
            for pc in range(12):
                for prefer in (None, Spelling.SHARP, Spelling.FLAT):
                    note = Note(pc)
                    assert parse_note(spell(note, system, prefer), system) == note

    def test_fixed_accidental_wins(self):
        """Sharp- and flat-only systems ignore preferences."""
        flat_note = Note(1, Spelling.FLAT)
        assert spell(flat_note, get_notation("english-sharp")) == "C#"
        assert spell(Note(1, Spelling.SHARP), get_notation("english-flat")) == "Db"
        assert spell(Note(6), get_notation("english-sharp"), Spelling.FLAT) == "F#"

    def test_auto_accidental(self):
        """Auto systems use the key preference, then the note's, then sharps."""
        assert spell(Note(1), ENGLISH) == "C#"
        assert spell(Note(1, Spelling.FLAT), ENGLISH) == "Db"
        assert spell(Note(1, Spelling.SHARP), ENGLISH, Spelling.FLAT) == "Db"

    def test_german(self):
        """German uses H for B natural and B for B flat."""
        german = get_notation("german")
        assert spell(Note(11), german) == "H"
        assert spell(Note(10), german) == "B"
        assert parse_note("H", german) == Note(11)
        assert parse_note("b", german) == Note(10)
        assert parse_note("Bb", german) == Note(10)
        assert spell(parse_note("Bb", german), german) == "B"
        assert spell(Note(1), get_notation("german-flat")) == "Db"

    def test_solfege(self):
        """Solfege spells with syllables."""
        assert spell(Note(7), get_notation("solfege")) == "Sol"
        assert spell(Note(10), get_notation("solfege-flat")) == "Sib"
        assert spell(Note(6), get_notation("solfege-sharp")) == "Fa#"
        assert parse_note("la", get_notation("solfege")) == Note(9)

    def test_unicode_accidentals(self):
        """Unicode sharp and flat signs are accepted."""
        note = parse_note("C♯", ENGLISH)
        assert note == Note(1)
        assert note.spelling is Spelling.SHARP
        assert parse_note("E♭", ENGLISH) == Note(3)

    def test_enharmonic_naturals(self):
        """E#, Fb, B# and Cb parse to their pitch classes."""
        assert parse_note("E#", ENGLISH) == Note(5)
        assert parse_note("Fb", ENGLISH) == Note(4)
        assert parse_note("B#", ENGLISH) == Note(0)
        assert parse_note("Cb", ENGLISH) == Note(11)

    def test_unrecognized_pitch(self):
        """Unknown spellings raise UnrecognizedPitch, with no cross-system guessing."""
        with pytest.raises(UnrecognizedPitch):
            parse_note("X", ENGLISH)
        with pytest.raises(ValueError):
            parse_note("H", ENGLISH)

    def test_get_notation(self):
        """Lookup is case-insensitive and rejects unknown names."""
        assert get_notation(" English-Flat ").name == "english-flat"
        with pytest.raises(UnrecognizedNotation):
            get_notation("klingon")

    def test_spell_chord(self):
        """Root and bass are spelled, the extension is copied."""
        chord = Chord(Note(10, Spelling.FLAT), "maj7", Note(2))
        assert spell_chord(chord, ENGLISH) == "Bbmaj7/D"
        assert spell_chord(chord, get_notation("german")) == "Bmaj7/D"


class TestKeySpelling:
    """Tests for key-derived accidental preference."""

    def test_natural_keys(self):
        """C major and A minor have no preference."""
        assert key_spelling(Chord(Note(0))) is None
        assert key_spelling(Chord(Note(9), "m")) is None

    def test_flat_keys(self):
        """F major and D minor are flat keys."""
        assert key_spelling(Chord(Note(5))) is Spelling.FLAT
        assert key_spelling(Chord(Note(2), "m")) is Spelling.FLAT

    def test_sharp_keys(self):
        """G major and E minor are sharp keys."""
        assert key_spelling(Chord(Note(7))) is Spelling.SHARP
        assert key_spelling(Chord(Note(4), "m")) is Spelling.SHARP

    def test_enharmonic_keys(self):
        """F#/Gb major and D#m/Ebm follow the key root's own spelling."""
        assert key_spelling(Chord(Note(6, Spelling.FLAT))) is Spelling.FLAT
        assert key_spelling(Chord(Note(6, Spelling.SHARP))) is Spelling.SHARP
        assert key_spelling(Chord(Note(6))) is Spelling.SHARP
        assert key_spelling(Chord(Note(3, Spelling.SHARP), "m")) is Spelling.SHARP
        assert key_spelling(Chord(Note(3), "m")) is Spelling.FLAT
