"""
Tests for unit conversion and bore geometry.

Validates:
1. Metric and imperial conversion to meters, and the round trip
2. Fractional inch parsing
3. BoreProfile invariants and derived quantities
4. Template registry
"""

from dataclasses import FrozenInstanceError
import math
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from didge_bore.units import (
    to_meters, from_meters, convert, parse_inches, parse_value, check_unit_system,
    METRIC, IMPERIAL, SI,
)
from didge_bore.geometry import (
    BorePoint, BoreProfile, GeometryError,
    TRADITIONAL, STRAIGHT, get_template, list_templates,
)


class TestUnits:
    """Test unit conversion."""

    def test_metric_to_meters(self):
        """Metric positions are cm, diameters mm."""
        assert to_meters(150, 30, METRIC) == pytest.approx((1.5, 0.030))

    def test_imperial_to_meters(self):
        """Imperial values are inches on both axes."""
        assert to_meters(10, 1, IMPERIAL) == pytest.approx((0.254, 0.0254))

    def test_si_is_identity(self):
        assert to_meters(1.5, 0.03, SI) == pytest.approx((1.5, 0.03))

    def test_metric_imperial_round_trip(self):
        """Converting to imperial and back is lossless within 1e-6 m."""
        for position, diameter in [(0, 30), (3, 32), (150, 120), (237.5, 88.8)]:
            inches = convert(position, diameter, METRIC, IMPERIAL)
            back = convert(*inches, IMPERIAL, METRIC)
            p1, d1 = to_meters(position, diameter, METRIC)
            p2, d2 = to_meters(*back, METRIC)
            assert abs(p1 - p2) < 1e-6
            assert abs(d1 - d2) < 1e-6

    def test_from_meters_inverts_to_meters(self):
        assert from_meters(*to_meters(59, 4.75, IMPERIAL), IMPERIAL) == pytest.approx((59, 4.75))

    def test_unknown_unit_system(self):
        with pytest.raises(ValueError):
            check_unit_system('furlongs')

    def test_unit_system_case_insensitive(self):
        assert check_unit_system(' Imperial ') == IMPERIAL


class TestParseInches:
    """Test woodworking fraction parsing."""

    def test_plain_number(self):
        assert parse_inches('12.5') == pytest.approx(12.5)

    def test_bare_fraction(self):
        assert parse_inches('3/4') == pytest.approx(0.75)

    def test_mixed_fraction_with_mark(self):
        assert parse_inches('1 1/8"') == pytest.approx(1.125)

    def test_hyphenated_fraction(self):
        assert parse_inches('1-1/8') == pytest.approx(1.125)

    def test_zero_denominator(self):
        with pytest.raises(ValueError):
            parse_inches('1/0')

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_inches('about an inch')

    def test_parse_value_metric_is_float(self):
        assert parse_value('32.5', METRIC) == pytest.approx(32.5)


class TestBoreProfile:
    """Test BoreProfile invariants and derived values."""

    def test_single_point_rejected(self):
        with pytest.raises(GeometryError):
            BoreProfile.from_pairs([(0.0, 0.03)])

    def test_first_point_must_be_mouth(self):
        with pytest.raises(GeometryError):
            BoreProfile.from_pairs([(0.1, 0.03), (1.5, 0.1)])

    def test_positions_must_increase(self):
        with pytest.raises(GeometryError):
            BoreProfile.from_pairs([(0.0, 0.03), (1.0, 0.05), (0.5, 0.04)])

    def test_zero_diameter_rejected(self):
        with pytest.raises(GeometryError):
            BoreProfile.from_pairs([(0.0, 0.03), (1.5, 0.0)])

    def test_geometry_error_is_value_error(self):
        assert issubclass(GeometryError, ValueError)

    def test_tuples_coerced_to_points(self):
        profile = BoreProfile(((0.0, 0.03), (1.5, 0.1)))
        assert all(isinstance(p, BorePoint) for p in profile.points)

    def test_length_and_ends(self):
        profile = TRADITIONAL.profile
        assert profile.length == pytest.approx(1.5)
        assert profile.mouth_diameter == pytest.approx(0.030)
        assert profile.bell_diameter == pytest.approx(0.120)

    def test_average_radius(self):
        """Mean of sampled diameters, halved."""
        assert TRADITIONAL.profile.average_radius == pytest.approx(0.0257)

    def test_cylinder_volume(self):
        """40 mm x 1.5 m cylinder."""
        assert STRAIGHT.profile.volume == pytest.approx(math.pi * 0.02 ** 2 * 1.5)

    def test_segments(self):
        segments = TRADITIONAL.profile.segments
        assert len(segments) == 4
        assert segments[0].length == pytest.approx(0.03)
        assert segments[0].avg_diameter == pytest.approx(0.031)
        assert segments[-1].end_position == pytest.approx(1.5)
        assert segments[-1].taper_ratio == pytest.approx(3.0)

    def test_diameter_interpolation(self):
        profile = TRADITIONAL.profile
        assert profile.diameter_at(0.015) == pytest.approx(0.031)
        assert profile.diameter_at(5.0) == pytest.approx(0.120)

    def test_segment_diameter_at(self):
        seg = TRADITIONAL.profile.segments[0]
        assert seg.diameter_at(0.015) == pytest.approx(0.031)

    def test_get_profile(self):
        x, d = TRADITIONAL.profile.get_profile(11)
        assert len(x) == 11
        assert x[-1] == pytest.approx(1.5)
        assert d[0] == pytest.approx(0.030)

    def test_scaled_to(self):
        scaled = TRADITIONAL.profile.scaled_to(3.0)
        assert scaled.length == pytest.approx(3.0)
        assert list(scaled.diameters) == pytest.approx(list(TRADITIONAL.profile.diameters))

    def test_scaled_to_rejects_zero(self):
        with pytest.raises(GeometryError):
            TRADITIONAL.profile.scaled_to(0.0)

    def test_profile_is_immutable(self):
        with pytest.raises(FrozenInstanceError):
            TRADITIONAL.profile.points = ()


class TestTemplates:
    """Test the template registry."""

    def test_lookup_is_case_insensitive(self):
        assert get_template('Traditional') is TRADITIONAL

    def test_alias(self):
        assert get_template('pvc') is STRAIGHT

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            get_template('saxophone')

    def test_every_template_builds(self):
        for name in list_templates():
            profile = get_template(name).profile
            assert profile.length > 1.0
