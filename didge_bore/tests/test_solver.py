"""
Tests for the closed-form acoustic solver.

Validates:
1. Effective length and quarter-wave frequency
2. Radius and mouthpiece corrections, including their bounds
3. Odd-harmonic series: ordering, audible-range filtering, amplitudes
4. Impedance profile along the bore
5. Degenerate input raises GeometryError, never NaN
"""

import math
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from didge_bore.geometry import BoreProfile, GeometryError, TRADITIONAL, STRAIGHT
from didge_bore.solver import (
    SPEED_OF_SOUND,
    base_frequency,
    effective_length,
    end_correction,
    fundamental_frequency,
    harmonic_series,
    impedance_profile,
    mouthpiece_correction,
    radius_correction,
    solve,
    taper_factor,
)


@pytest.fixture
def traditional():
    return TRADITIONAL.profile


class TestLength:
    """Test end correction and effective length."""

    def test_end_correction(self, traditional):
        """0.6 x bell radius (60 mm)."""
        assert end_correction(traditional) == pytest.approx(0.036)

    def test_effective_length(self, traditional):
        assert effective_length(traditional) == pytest.approx(1.536)

    def test_base_frequency(self):
        assert base_frequency(1.536, 343.0) == pytest.approx(343.0 / 6.144)

    def test_base_frequency_rejects_zero_length(self):
        with pytest.raises(GeometryError):
            base_frequency(0.0)

    def test_base_frequency_rejects_bad_speed(self):
        with pytest.raises(GeometryError):
            base_frequency(1.5, 0.0)
        with pytest.raises(GeometryError):
            base_frequency(1.5, float('nan'))


class TestCorrections:
    """Test radius and mouthpiece corrections."""

    def test_radius_correction(self, traditional):
        assert radius_correction(traditional) == pytest.approx(1 - 0.0257 * 0.1)

    def test_default_mouthpiece(self, traditional):
        """30 -> 32 mm over the first 30 mm."""
        mp = mouthpiece_correction(traditional)
        assert mp.mean_radius == pytest.approx(0.0155)
        assert mp.taper_rate == pytest.approx(2 / 30)
        assert mp.size_correction == pytest.approx(0.95)
        assert mp.taper_correction == pytest.approx(1 - abs(2 / 30 - 0.3) * 0.1)
        assert mp.combined == pytest.approx(mp.size_correction * mp.taper_correction)

    def test_window_spans_segments(self):
        """Weighted mean across a point inside the window."""
        profile = BoreProfile.from_pairs([(0.0, 0.030), (0.010, 0.030), (0.030, 0.040), (1.5, 0.1)])
        mp = mouthpiece_correction(profile)
        # 10 mm at 30 mm, 20 mm averaging 35 mm
        assert mp.mean_radius == pytest.approx((0.030 * 10 + 0.035 * 20) / 30 / 2)
        assert mp.taper_rate == pytest.approx(10 / 30)

    def test_short_bore_window(self):
        profile = BoreProfile.from_pairs([(0.0, 0.030), (0.020, 0.040)])
        mp = mouthpiece_correction(profile)
        assert mp.window == pytest.approx(0.020)
        assert mp.taper_rate == pytest.approx(0.5)

    @pytest.mark.parametrize('pairs', [
        [(0.0, 0.010), (1.5, 0.050)],                    # very narrow
        [(0.0, 0.100), (1.5, 0.150)],                    # very wide
        [(0.0, 0.020), (0.030, 0.080), (1.5, 0.100)],    # steep flare
        [(0.0, 0.060), (0.030, 0.020), (1.5, 0.080)],    # contracting
        [(0.0, 0.030), (0.030, 0.039), (1.5, 0.100)],    # optimal taper
    ])
    def test_mouthpiece_bounds(self, pairs):
        combined = mouthpiece_correction(BoreProfile.from_pairs(pairs)).combined
        assert 0.75 * 0.9 - 1e-12 <= combined <= 0.95 * 1.1 + 1e-12

    def test_taper_factor_cylinder(self):
        assert taper_factor(STRAIGHT.profile) == pytest.approx(0.0)

    def test_taper_factor_flared(self, traditional):
        logs = [abs(math.log(r)) for r in (32 / 30, 35 / 32, 40 / 35, 3.0)]
        assert taper_factor(traditional) == pytest.approx((max(logs) + sum(logs) / 4) / 2)


class TestFundamental:
    """Test the corrected fundamental."""

    def test_product_of_corrections(self, traditional):
        expected = (
            base_frequency(effective_length(traditional), SPEED_OF_SOUND)
            * radius_correction(traditional)
            * mouthpiece_correction(traditional).combined
        )
        assert fundamental_frequency(traditional) == pytest.approx(expected)

    def test_default_bore_drone(self, traditional):
        assert fundamental_frequency(traditional) == pytest.approx(51.67, abs=0.05)

    def test_mouthpiece_override(self, traditional):
        plain = fundamental_frequency(traditional, mouthpiece_factor=1.0)
        assert plain == pytest.approx(
            base_frequency(1.536) * radius_correction(traditional)
        )

    def test_scales_with_sound_speed(self, traditional):
        ratio = fundamental_frequency(traditional, 349.0) / fundamental_frequency(traditional, 343.0)
        assert ratio == pytest.approx(349 / 343)

    def test_decreases_with_length(self, traditional):
        lengths = [1.0, 1.2, 1.5, 1.8, 2.0, 2.5, 3.0]
        freqs = [fundamental_frequency(traditional.scaled_to(L)) for L in lengths]
        assert all(b < a for a, b in zip(freqs, freqs[1:]))


class TestHarmonicSeries:
    """Test the odd-harmonic series."""

    def test_odd_multiples(self):
        series = harmonic_series(50.0, 12)
        assert len(series) == 12
        assert [h.order for h in series] == [2 * n - 1 for n in range(1, 13)]
        for h in series:
            assert h.frequency == pytest.approx(50.0 * h.order)

    def test_strictly_increasing(self):
        freqs = [h.frequency for h in harmonic_series(51.7, 12, flare=0.7)]
        assert all(b > a for a, b in zip(freqs, freqs[1:]))

    def test_upper_audible_limit(self):
        """Orders above 19 exceed 20 kHz at 1 kHz."""
        series = harmonic_series(1000.0, 12)
        assert len(series) == 10
        assert series[-1].frequency == pytest.approx(19000.0)

    def test_lower_audible_limit(self):
        series = harmonic_series(10.0, 3)
        assert [h.index for h in series] == [2, 3]

    def test_cylinder_amplitudes(self):
        """No flare, no inharmonicity penalty."""
        for h in harmonic_series(50.0, 6, flare=0.0):
            assert h.amplitude == pytest.approx(1 / math.sqrt(h.index))
            assert h.inharmonicity == 0.0

    def test_flare_penalises_amplitude(self):
        plain = harmonic_series(50.0, 6, flare=0.0)
        flared = harmonic_series(50.0, 6, flare=0.7)
        assert flared[0].amplitude == pytest.approx(1.0)
        for a, b in zip(plain[1:], flared[1:]):
            assert b.amplitude < a.amplitude
            assert b.inharmonicity > 0

    def test_amplitude_and_quality_bounds(self):
        for h in harmonic_series(40.0, 12, flare=5.0):
            assert 0.0 <= h.amplitude <= 1.0
            assert 0.0 <= h.quality <= 1.0

    def test_quality_favours_low_harmonics(self):
        series = harmonic_series(50.0, 12)
        assert series[0].quality == pytest.approx(1.0)
        assert series[-1].quality == pytest.approx(0.3)

    def test_max_harmonics_validated(self):
        with pytest.raises(ValueError):
            harmonic_series(50.0, 0)

    def test_non_positive_fundamental(self):
        with pytest.raises(GeometryError):
            harmonic_series(0.0, 3)


class TestSolve:
    """Test the combined solve."""

    def test_solution_fields(self, traditional):
        sol = solve(traditional)
        assert sol.physical_length == pytest.approx(1.5)
        assert sol.effective_length == pytest.approx(1.536)
        assert sol.mouthpiece_factor == pytest.approx(sol.mouthpiece.combined)
        assert sol.harmonics[0].frequency == pytest.approx(sol.fundamental)
        assert all(math.isfinite(h.frequency) for h in sol.harmonics)

    def test_rejects_negative_speed(self, traditional):
        with pytest.raises(GeometryError):
            solve(traditional, -343.0)


class TestImpedanceProfile:
    """Test characteristic impedance along the bore."""

    def test_cylinder(self):
        points = impedance_profile(STRAIGHT.profile, 343.0, 1.204)
        assert [p.position for p in points] == pytest.approx([0.0, 50.0, 100.0])
        for p in points:
            assert p.impedance == pytest.approx(1.204 * 343.0 / (math.pi * 0.02 ** 2))
            assert p.reflection == pytest.approx(0.0)

    def test_expanding_bore_reflects_negative(self, traditional):
        points = impedance_profile(traditional)
        assert len(points) == 4
        assert all(p.reflection < 0 for p in points)
        # Wider segments, lower impedance
        assert points[-1].impedance < points[0].impedance

    def test_reflection_value(self, traditional):
        last = impedance_profile(traditional)[-1]
        ratio = (40 / 120) ** 2
        assert last.reflection == pytest.approx((ratio - 1) / (ratio + 1))
