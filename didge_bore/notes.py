"""
Musical note utilities.

Frequencies are mapped onto twelve-tone equal temperament relative to a
reference A4. Octave numbers count from A, so every octave runs A..G#:
A4 = 440 Hz, C5 is 3 semitones above it and still reads as octave 4.
"""

from dataclasses import dataclass
from types import MappingProxyType
import math
from typing import Mapping

NOTE_NAMES = ('A', 'A#', 'B', 'C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#')

A4_FREQUENCY = 440.0

TUNING_REFERENCES = MappingProxyType({
    'standard': 440.0,
    'alternative': 432.0,
})

_FLATS = {'BB': 'A#', 'DB': 'C#', 'EB': 'D#', 'GB': 'F#', 'AB': 'G#', 'CB': 'B', 'FB': 'E'}


@dataclass(frozen=True)
class NoteInfo:
    """Nearest equal-tempered note for a frequency."""
    note: str           # Pitch class, e.g. 'A#'
    octave: int
    cent_diff: float    # Signed deviation from the note, one decimal

    @property
    def name(self) -> str:
        return f"{self.note}{self.octave}"


def _check_frequency(freq) -> float:
    try:
        value = float(freq)
    except (TypeError, ValueError):
        raise ValueError(f"Frequency must be a positive number, got {freq!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"Frequency must be a positive number, got {freq!r}")
    return value


def note_number_to_frequency(note_number: int, a4: float = A4_FREQUENCY) -> float:
    """Frequency of the note `note_number` semitones from A4."""
    return a4 * 2 ** (note_number / 12)


def frequency_to_note(freq: float, a4: float = A4_FREQUENCY) -> NoteInfo:
    """
    Convert frequency to nearest note and cents deviation.

    Examples:
        440.0  -> A4, 0.0
        466.16 -> A#4, 0.0
    """
    freq = _check_frequency(freq)
    note_number = round(12 * math.log2(freq / a4))
    exact = note_number_to_frequency(note_number, a4)
    cents = round(1200 * math.log2(freq / exact) * 10) / 10

    return NoteInfo(
        note=NOTE_NAMES[note_number % 12],
        octave=note_number // 12 + 4,
        cent_diff=cents + 0.0,  # no negative zero
    )


def note_to_frequency(note: str, a4: float = A4_FREQUENCY) -> float:
    """
    Convert note name to frequency.

    Examples: 'A4' = 440 Hz, 'A#4' = 466.16 Hz, 'Bb4' = 466.16 Hz
    """
    text = note.strip()
    if len(text) < 2:
        raise ValueError(f"Invalid note name: '{note}'")

    if len(text) > 2 and text[1] in '#b':
        pitch, octave_text = text[:2], text[2:]
    else:
        pitch, octave_text = text[:1], text[1:]

    pitch = pitch[0].upper() + pitch[1:]
    if pitch.endswith('b'):
        pitch = _FLATS.get(pitch.upper(), pitch)
    if pitch not in NOTE_NAMES:
        raise ValueError(f"Invalid note name: '{note}'")
    try:
        octave = int(octave_text)
    except ValueError:
        raise ValueError(f"Invalid octave in note name: '{note}'") from None

    return note_number_to_frequency(NOTE_NAMES.index(pitch) + (octave - 4) * 12, a4)


# =============================================================================
# Table lookup
# =============================================================================

def build_note_table(a4: float = A4_FREQUENCY, octaves: range = range(0, 9)) -> Mapping[str, tuple[float, ...]]:
    """Pitch class -> frequencies for each octave in `octaves` (read-only)."""
    return MappingProxyType({
        name: tuple(
            note_number_to_frequency(i + (octave - 4) * 12, a4) for octave in octaves
        )
        for i, name in enumerate(NOTE_NAMES)
    })


NOTE_TABLE_OCTAVES = range(0, 9)
NOTE_FREQUENCY_TABLE = build_note_table(A4_FREQUENCY, NOTE_TABLE_OCTAVES)


def frequency_to_note_from_table(
    freq: float,
    table: Mapping[str, tuple[float, ...]] = NOTE_FREQUENCY_TABLE,
    first_octave: int = NOTE_TABLE_OCTAVES.start
) -> NoteInfo:
    """
    Nearest note by searching a note-frequency table.

    Nearness is measured in log-frequency, so the result matches
    frequency_to_note for any frequency inside the table's range.
    """
    freq = _check_frequency(freq)
    target = math.log2(freq)
    best = min(
        (
            (abs(math.log2(f) - target), name, first_octave + i, f)
            for name, freqs in table.items()
            for i, f in enumerate(freqs)
        ),
        key=lambda item: item[0]
    )
    _, name, octave, exact = best
    cents = round(1200 * math.log2(freq / exact) * 10) / 10
    return NoteInfo(note=name, octave=octave, cent_diff=cents + 0.0)
