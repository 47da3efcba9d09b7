"""
Tests for air conditions and sound-speed profiles.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from didge_bore.atmosphere import (
    COLD,
    HIGH_ALTITUDE,
    HOT,
    STANDARD,
    air_density,
    custom_sound_speed_profile,
    get_sound_speed_profile,
    list_sound_speed_profiles,
    resolve_sound_speed,
    speed_of_sound,
)


class TestPhysics:
    """Test derived air properties."""

    def test_speed_at_room_temperature(self):
        assert speed_of_sound(20.0, 0.0) == pytest.approx(343.2, abs=0.1)

    def test_humidity_raises_speed(self):
        assert speed_of_sound(20.0, 80.0) > speed_of_sound(20.0, 20.0)

    def test_below_absolute_zero(self):
        with pytest.raises(ValueError):
            speed_of_sound(-300.0)

    def test_air_density(self):
        assert air_density(20.0) == pytest.approx(1.204, abs=0.001)
        assert STANDARD.air_density == pytest.approx(1.204, abs=0.002)

    def test_thin_air_at_altitude(self):
        assert HIGH_ALTITUDE.air_density < STANDARD.air_density


class TestProfiles:
    """Test the built-in atmospheres."""

    def test_reference_speeds(self):
        assert [p.speed for p in (STANDARD, HOT, COLD, HIGH_ALTITUDE)] == [343, 349, 331, 335]

    def test_lookup(self):
        assert get_sound_speed_profile('standard') is STANDARD
        assert get_sound_speed_profile('High Altitude') is HIGH_ALTITUDE
        assert get_sound_speed_profile('high-altitude') is HIGH_ALTITUDE

    def test_aliases(self):
        assert get_sound_speed_profile('normal') is STANDARD
        assert get_sound_speed_profile('warm') is HOT
        assert get_sound_speed_profile('altitude') is HIGH_ALTITUDE

    def test_unknown(self):
        with pytest.raises(ValueError, match='Unknown atmosphere'):
            get_sound_speed_profile('martian')

    def test_list(self):
        names = list_sound_speed_profiles()
        assert 'standard' in names
        assert names == sorted(names)

    def test_custom_derives_speed(self):
        profile = custom_sound_speed_profile('lab', temperature=25.0, humidity=0.0)
        assert profile.speed == pytest.approx(speed_of_sound(25.0, 0.0))
        assert profile.name == 'lab'

    def test_custom_measured_speed(self):
        assert custom_sound_speed_profile('lab', 20.0, speed=345.5).speed == 345.5

    def test_custom_rejects_non_positive_speed(self):
        with pytest.raises(ValueError):
            custom_sound_speed_profile('bad', 20.0, speed=0.0)


class TestResolveSoundSpeed:

    def test_default(self):
        assert resolve_sound_speed(None) == 343.0

    def test_number_name_and_profile(self):
        assert resolve_sound_speed(340) == 340.0
        assert resolve_sound_speed('cold') == 331.0
        assert resolve_sound_speed(HOT) == 349.0
