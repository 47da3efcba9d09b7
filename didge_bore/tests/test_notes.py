"""
Tests for note mapping.

Octaves count from A: A4 = 440 Hz and the C three semitones above it is C4.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from didge_bore.notes import (
    NOTE_NAMES,
    NOTE_FREQUENCY_TABLE,
    TUNING_REFERENCES,
    NoteInfo,
    build_note_table,
    frequency_to_note,
    frequency_to_note_from_table,
    note_to_frequency,
)


class TestFrequencyToNote:
    """Test closed-form note mapping."""

    def test_a4(self):
        assert frequency_to_note(440) == NoteInfo('A', 4, 0.0)

    def test_a5(self):
        assert frequency_to_note(880) == NoteInfo('A', 5, 0.0)

    def test_a_sharp_4(self):
        note = frequency_to_note(466.16)
        assert (note.note, note.octave) == ('A#', 4)
        assert abs(note.cent_diff) < 0.5

    def test_octave_counts_from_a(self):
        note = frequency_to_note(523.25)
        assert (note.note, note.octave) == ('C', 4)
        note = frequency_to_note(415.30)
        assert (note.note, note.octave) == ('G#', 3)

    def test_cents_sign_and_rounding(self):
        """A quarter-tone above A4 is +50 cents (rounded to 0.1)."""
        note = frequency_to_note(440 * 2 ** (49.96 / 1200))
        assert note.note == 'A'
        assert note.cent_diff == pytest.approx(50.0)
        flat = frequency_to_note(440 * 2 ** (-10 / 1200))
        assert flat.cent_diff == pytest.approx(-10.0)

    def test_no_negative_zero(self):
        assert str(frequency_to_note(439.9999).cent_diff) == '0.0'

    def test_drone_range(self):
        note = frequency_to_note(73.42)
        assert note.name == 'D1'

    def test_custom_reference(self):
        assert frequency_to_note(432, a4=432) == NoteInfo('A', 4, 0.0)

    def test_numpy_scalar(self):
        assert frequency_to_note(np.float64(440.0)).note == 'A'

    @pytest.mark.parametrize('bad', [0, -440, float('nan'), float('inf'), 'loud'])
    def test_invalid_frequency(self, bad):
        with pytest.raises(ValueError):
            frequency_to_note(bad)


class TestNoteToFrequency:
    """Test note-name parsing."""

    def test_a4(self):
        assert note_to_frequency('A4') == pytest.approx(440.0)

    def test_sharp_and_flat_agree(self):
        assert note_to_frequency('A#4') == pytest.approx(466.16, abs=0.01)
        assert note_to_frequency('Bb4') == pytest.approx(note_to_frequency('A#4'))

    def test_lowercase(self):
        assert note_to_frequency('d1') == pytest.approx(73.416, abs=0.001)

    def test_round_trip(self):
        for name in NOTE_NAMES:
            for octave in range(0, 6):
                f = note_to_frequency(f"{name}{octave}")
                assert frequency_to_note(f).name == f"{name}{octave}"

    @pytest.mark.parametrize('bad', ['H2', 'A', 'C#x', ''])
    def test_invalid_note(self, bad):
        with pytest.raises(ValueError):
            note_to_frequency(bad)


class TestNoteTable:
    """Test the table-based variant."""

    def test_table_shape(self):
        assert set(NOTE_FREQUENCY_TABLE) == set(NOTE_NAMES)
        assert all(len(freqs) == 9 for freqs in NOTE_FREQUENCY_TABLE.values())
        assert NOTE_FREQUENCY_TABLE['A'][4] == pytest.approx(440.0)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            NOTE_FREQUENCY_TABLE['A'] = (0.0,)

    def test_agrees_with_closed_form(self):
        for f in np.geomspace(30, 2000, 97):
            table_note = frequency_to_note_from_table(f)
            closed = frequency_to_note(f)
            assert (table_note.note, table_note.octave) == (closed.note, closed.octave)
            assert table_note.cent_diff == pytest.approx(closed.cent_diff, abs=0.11)

    def test_custom_table(self):
        table = build_note_table(432.0)
        assert frequency_to_note_from_table(432.0, table) == NoteInfo('A', 4, 0.0)


class TestTuningReferences:

    def test_values(self):
        assert TUNING_REFERENCES['standard'] == 440.0
        assert TUNING_REFERENCES['alternative'] == 432.0

    def test_read_only(self):
        with pytest.raises(TypeError):
            TUNING_REFERENCES['standard'] = 441.0
