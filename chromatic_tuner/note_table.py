"""The chromatic note table and helpers for building alternative tables."""

import re
from typing import List, Tuple

import numpy as np

from .logging_config import get_logger
from .note_types import NoteEntry

# Get logger for this module
logger = get_logger(__name__)

SHARP_NOTES: List[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]
FLAT_NOTES: List[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# A4 is MIDI note 69
A4_MIDI = 69
DEFAULT_REFERENCE_A4 = 440.0

NOTE_PATTERN = re.compile(r"^([A-G])([#b]?)(-?[0-9]+)$")

# Reference frequencies for C3..B5 in standard tuning (A4 = 440 Hz)
NOTE_TABLE: Tuple[NoteEntry, ...] = tuple(
    NoteEntry(name, freq)
    for name, freq in [
        ("C3", 130.81),
        ("C#3", 138.59),
        ("D3", 146.83),
        ("D#3", 155.56),
        ("E3", 164.81),
        ("F3", 174.61),
        ("F#3", 185.0),
        ("G3", 196.0),
        ("G#3", 207.65),
        ("A3", 220.0),
        ("A#3", 233.08),
        ("B3", 246.94),
        ("C4", 261.63),
        ("C#4", 277.18),
        ("D4", 293.66),
        ("D#4", 311.13),
        ("E4", 329.63),
        ("F4", 349.23),
        ("F#4", 369.99),
        ("G4", 392.0),
        ("G#4", 415.3),
        ("A4", 440.0),
        ("A#4", 466.16),
        ("B4", 493.88),
        ("C5", 523.25),
        ("C#5", 554.37),
        ("D5", 587.33),
        ("D#5", 622.25),
        ("E5", 659.25),
        ("F5", 698.46),
        ("F#5", 739.99),
        ("G5", 783.99),
        ("G#5", 830.61),
        ("A5", 880.0),
        ("A#5", 932.33),
        ("B5", 987.77),
    ]
)


def note_name_from_midi(midi_number: int, use_flats: bool = False) -> str:
    """Name a MIDI note number using Scientific Pitch Notation (SPN).

    Args:
        midi_number: MIDI note number (60 is middle C)
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave (e.g., 'A4', 'C#4', 'Bb3')
    """
    octave = (midi_number // 12) - 1
    note_idx = midi_number % 12
    names = FLAT_NOTES if use_flats else SHARP_NOTES
    return f"{names[note_idx]}{octave}"


def midi_from_note_name(note_name: str) -> int:
    """Parse an SPN note name (e.g., 'C3', 'F#4', 'Bb2') into a MIDI number.

    Raises:
        ValueError: If the name is not a valid note
    """
    match = NOTE_PATTERN.match(note_name.strip()) if note_name else None
    if not match:
        raise ValueError(f"Invalid note name: {note_name!r}")

    letter, accidental, octave = match.groups()
    semitone = SHARP_NOTES.index(letter)
    if accidental == "#":
        semitone += 1
    elif accidental == "b":
        semitone -= 1
    return (int(octave) + 1) * 12 + semitone


def build_note_table(
    reference_a4: float = DEFAULT_REFERENCE_A4,
    first: str = "C3",
    last: str = "B5",
    use_flats: bool = False,
) -> Tuple[NoteEntry, ...]:
    """Build an equal-tempered note table.

    Frequencies are rounded to two decimals, matching NOTE_TABLE.

    Args:
        reference_a4: Concert pitch of A4 in Hz
        first: Lowest note in the table (inclusive)
        last: Highest note in the table (inclusive)
        use_flats: Name black keys with flats instead of sharps

    Returns:
        Ordered tuple of NoteEntry, one per semitone

    Raises:
        ValueError: If the reference is not positive or the range is empty
    """
    if reference_a4 <= 0:
        raise ValueError("reference_a4 must be positive")

    low = midi_from_note_name(first)
    high = midi_from_note_name(last)
    if high < low:
        raise ValueError(f"Empty note range: {first}..{last}")

    midi_numbers = np.arange(low, high + 1)
    frequencies = reference_a4 * 2.0 ** ((midi_numbers - A4_MIDI) / 12.0)

    table = tuple(
        NoteEntry(note_name_from_midi(int(midi), use_flats), round(float(freq), 2))
        for midi, freq in zip(midi_numbers, frequencies)
    )
    logger.debug(
        f"Built note table {table[0].name}..{table[-1].name} "
        f"({len(table)} notes, A4={reference_a4}Hz)"
    )
    return table
