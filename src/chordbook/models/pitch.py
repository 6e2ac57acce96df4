"""Symbolic pitch model: notes, chords, notation systems.

Pitch is held as an integer pitch class (0 = C ... 11 = B) so that
transposition is plain modular arithmetic. Text only appears at the edges,
when a note is spelled for display or parsed back from a notation system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from chordbook.errors import UnrecognizedNotation, UnrecognizedPitch


class Spelling(str, Enum):
    """Accidental preference used to spell black-key pitch classes."""

    SHARP = "sharp"
    FLAT = "flat"


@dataclass(frozen=True)
class Note:
    """A pitch class with an optional spelling preference.

    The spelling preference is not part of equality: C# and Db are the same
    note.
    """

    pitch_class: int
    spelling: Spelling | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pitch_class", self.pitch_class % 12)

    def transposed(self, semitones: int) -> "Note":
        return Note(self.pitch_class + semitones, self.spelling)


@dataclass(frozen=True)
class Chord:
    """A root note, an opaque extension and an optional slash bass."""

    root: Note
    extension: str = ""
    bass: Note | None = None

    def transposed(self, semitones: int) -> "Chord":
        bass = self.bass.transposed(semitones) if self.bass is not None else None
        return Chord(self.root.transposed(semitones), self.extension, bass)

    @property
    def is_minor(self) -> bool:
        ext = self.extension
        return ext.startswith(("m", "-")) and not ext.startswith(("maj", "ma"))

    def __str__(self) -> str:
        return spell_chord(self, ENGLISH)


Transposable = TypeVar("Transposable", Note, Chord)


def transpose(value: Transposable, semitones: int) -> Transposable:
    """Shift a note or chord by a (possibly negative) number of semitones."""
    return value.transposed(semitones)


def _normalize(text: str) -> str:
    return text.strip().replace("♯", "#").replace("♭", "b").lower()


@dataclass(frozen=True)
class NotationSystem:
    """A table of note spellings for one naming convention.

    Attributes:
        name: Registry name, e.g. "english-flat".
        sharps: Display string per pitch class when spelling with sharps.
        flats: Display string per pitch class when spelling with flats.
        accidental: Fixed accidental policy, or None to follow the note's
            (or the key's) preference.
    """

    name: str
    sharps: tuple[str, ...]
    flats: tuple[str, ...]
    accidental: Spelling | None = None
    extra: tuple[tuple[str, int], ...] = ()
    _table: dict[str, Note] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        table: dict[str, Note] = {}
        for text, pc in self.extra:
            table[_normalize(text)] = Note(pc, _accidental_of(text))
        for pc in range(12):
            sharp, flat = self.sharps[pc], self.flats[pc]
            if sharp == flat:
                table[_normalize(sharp)] = Note(pc)
            else:
                table[_normalize(sharp)] = Note(pc, Spelling.SHARP)
                table[_normalize(flat)] = Note(pc, Spelling.FLAT)
        object.__setattr__(self, "_table", table)

    @property
    def max_length(self) -> int:
        return max(len(key) for key in self._table)

    def lookup(self, text: str) -> Note | None:
        return self._table.get(_normalize(text))

    def match_prefix(self, text: str) -> tuple[Note, int] | None:
        """Find the longest leading spelling in ``text``.

        Returns the note and the number of characters it consumed.
        """
        candidate = text.replace("♯", "#").replace("♭", "b").lower()
        for length in range(min(self.max_length, len(candidate)), 0, -1):
            note = self._table.get(candidate[:length])
            if note is not None:
                return note, length
        return None


def _accidental_of(text: str) -> Spelling | None:
    if text.endswith(("#", "♯")):
        return Spelling.SHARP
    if len(text) > 1 and text.endswith(("b", "♭")):
        return Spelling.FLAT
    return None


def _make_system(
    name: str,
    naturals: dict[int, str],
    overrides: dict[int, str] | None = None,
    accidental: Spelling | None = None,
    aliases: dict[str, int] | None = None,
) -> NotationSystem:
    sharps: list[str] = []
    flats: list[str] = []
    for pc in range(12):
        if pc in naturals:
            sharps.append(naturals[pc])
            flats.append(naturals[pc])
        else:
            sharps.append(naturals[pc - 1] + "#")
            flats.append(naturals[(pc + 1) % 12] + "b")
    for pc, text in (overrides or {}).items():
        sharps[pc] = text
        flats[pc] = text

    # Enharmonic spellings of naturals (E#, Fb, Cb, B#) are accepted on input
    extra: list[tuple[str, int]] = []
    for pc, text in naturals.items():
        if pc in (overrides or {}):
            continue
        extra.append((text + "#", pc + 1))
        extra.append((text + "b", pc - 1))
    extra.extend((aliases or {}).items())

    return NotationSystem(
        name=name,
        sharps=tuple(sharps),
        flats=tuple(flats),
        accidental=accidental,
        extra=tuple(extra),
    )


_LETTERS = {0: "C", 2: "D", 4: "E", 5: "F", 7: "G", 9: "A", 11: "B"}
_GERMAN = {0: "C", 2: "D", 4: "E", 5: "F", 7: "G", 9: "A", 11: "H"}
# German B is B flat; the English "Bb" is read as the same note. The -is/-es
# names (Fis, Es, As) are not recognized.
_GERMAN_ALIASES = {"Bb": 10}
_SOLFEGE = {0: "Do", 2: "Re", 4: "Mi", 5: "Fa", 7: "Sol", 9: "La", 11: "Si"}

ENGLISH = _make_system("english", _LETTERS)

NOTATIONS: dict[str, NotationSystem] = {
    system.name: system
    for system in (
        ENGLISH,
        _make_system("english-sharp", _LETTERS, accidental=Spelling.SHARP),
        _make_system("english-flat", _LETTERS, accidental=Spelling.FLAT),
        _make_system("german", _GERMAN, {10: "B"}, aliases=_GERMAN_ALIASES),
        _make_system("german-sharp", _GERMAN, {10: "B"}, Spelling.SHARP, _GERMAN_ALIASES),
        _make_system("german-flat", _GERMAN, {10: "B"}, Spelling.FLAT, _GERMAN_ALIASES),
        _make_system("solfege", _SOLFEGE),
        _make_system("solfege-sharp", _SOLFEGE, accidental=Spelling.SHARP),
        _make_system("solfege-flat", _SOLFEGE, accidental=Spelling.FLAT),
    )
}


def get_notation(name: str) -> NotationSystem:
    """Look up a notation system by (case-insensitive) name."""
    try:
        return NOTATIONS[name.strip().lower()]
    except KeyError:
        raise UnrecognizedNotation(name) from None


def spell(note: Note, system: NotationSystem, prefer: Spelling | None = None) -> str:
    """Spell a note in a notation system.

    A system with a fixed accidental always wins. Otherwise ``prefer`` (the
    key's convention) is used, then the note's own preference, then sharps.
    """
    accidental = system.accidental or prefer or note.spelling or Spelling.SHARP
    table = system.flats if accidental is Spelling.FLAT else system.sharps
    return table[note.pitch_class]


def parse_note(text: str, system: NotationSystem) -> Note:
    """Parse a note spelled in ``system``; raises UnrecognizedPitch."""
    note = system.lookup(text)
    if note is None:
        raise UnrecognizedPitch(text, system.name)
    return note


def spell_chord(chord: Chord, system: NotationSystem, prefer: Spelling | None = None) -> str:
    text = spell(chord.root, system, prefer) + chord.extension
    if chord.bass is not None:
        text += "/" + spell(chord.bass, system, prefer)
    return text


# Keys conventionally written with flats
_FLAT_MAJOR_KEYS = frozenset({5, 10, 3, 8, 1})  # F Bb Eb Ab Db
_FLAT_MINOR_KEYS = frozenset({2, 7, 0, 5, 10, 3})  # Dm Gm Cm Fm Bbm Ebm
_NATURAL_KEYS = {False: 0, True: 9}  # C major, A minor
# Six sharps or six flats: F#/Gb major, D#m/Ebm
_ENHARMONIC_KEYS = {False: 6, True: 3}


def key_spelling(key: Chord) -> Spelling | None:
    """Accidental convention of a key, None for C major and A minor.

    F#/Gb major and D#m/Ebm are written either way; the key root's own
    spelling decides, and without one F# and Ebm are used.
    """
    pc = key.root.pitch_class
    minor = key.is_minor
    if pc == _NATURAL_KEYS[minor]:
        return None
    if pc == _ENHARMONIC_KEYS[minor] and key.root.spelling is not None:
        return key.root.spelling
    flats = _FLAT_MINOR_KEYS if minor else _FLAT_MAJOR_KEYS
    return Spelling.FLAT if pc in flats else Spelling.SHARP
