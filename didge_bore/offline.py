"""
Precomputed resonance table and the simplified fast path.

The table holds ideal quarter-wave series for common bore lengths at the
built-in sound speeds. It is built once at import and exposed read-only;
pass a different table to analyze_offline to override it.

The fast path skips the mouthpiece analysis and applies the generic
MOUTH_IMPEDANCE_FACTOR instead, so it is cheap but less precise for
unusual mouthpieces.
"""

import logging
import math
from types import MappingProxyType
from typing import Mapping

from .geometry import BoreProfile, GeometryError
from .solver import (
    SPEED_OF_SOUND, MAX_HARMONICS, AUDIBLE_RANGE, MOUTH_IMPEDANCE_FACTOR,
    AcousticSolution, Harmonic,
    base_frequency, effective_length, end_correction, radius_correction,
    check_sound_speed, harmonic_quality,
)

logger = logging.getLogger(__name__)

COMMON_LENGTHS = (1.0, 1.2, 1.5, 1.8, 2.0, 2.5, 3.0)     # m
TABLE_SOUND_SPEEDS = (331, 343, 349)                     # m/s

AMPLITUDE_FLOOR = 0.1
AMPLITUDE_DECAY = 0.1

FrequencyTable = Mapping[tuple[float, int], tuple[float, ...]]


def table_key(length: float, sound_speed: float) -> tuple[float, int]:
    """Lookup key: length rounded to 0.1 m, speed rounded to 1 m/s."""
    return round(length, 1), int(round(sound_speed))


def build_frequency_table(
    lengths=COMMON_LENGTHS,
    sound_speeds=TABLE_SOUND_SPEEDS,
    n_harmonics: int = MAX_HARMONICS
) -> FrequencyTable:
    """
    Odd-harmonic series c/(4L) * (2n - 1) for every length and speed.

    Returns:
        Read-only mapping (length, speed) -> tuple of frequencies (Hz)
    """
    table = {}
    for length in lengths:
        for speed in sound_speeds:
            f1 = speed / (4 * length)
            table[table_key(length, speed)] = tuple(
                f1 * (2 * n - 1) for n in range(1, n_harmonics + 1)
            )
    return MappingProxyType(table)


FREQUENCY_TABLE = build_frequency_table()


def offline_amplitude(n: int) -> float:
    """Generic amplitude envelope for harmonic n."""
    return max(AMPLITUDE_FLOOR, 1 / math.sqrt(n)) * math.exp(-AMPLITUDE_DECAY * (n - 1))


def analyze_offline(
    profile: BoreProfile,
    sound_speed: float = SPEED_OF_SOUND,
    max_harmonics: int = MAX_HARMONICS,
    table: FrequencyTable = FREQUENCY_TABLE
) -> AcousticSolution:
    """
    Simplified analysis backed by the precomputed table.

    On a table hit the cached fundamental is rescaled from the tabled
    length and speed to the bore's effective length and the given speed;
    on a miss it is computed directly. Either way the radius correction and
    the generic mouth impedance factor are then applied.
    """
    if max_harmonics < 1:
        raise ValueError(f"max_harmonics must be at least 1, got {max_harmonics}")

    sound_speed = check_sound_speed(sound_speed)
    l_eff = effective_length(profile)
    key = table_key(profile.length, sound_speed)
    cached = table.get(key)

    if cached is not None:
        logger.debug("Frequency table hit for %s", key)
        base = cached[0] * key[0] / l_eff * sound_speed / key[1]
    else:
        logger.debug("Frequency table miss for %s", key)
        base = base_frequency(l_eff, sound_speed)

    r_corr = radius_correction(profile)
    fundamental = base * r_corr * MOUTH_IMPEDANCE_FACTOR
    if not math.isfinite(fundamental) or fundamental <= 0:
        raise GeometryError(f"Fundamental must be positive, got {fundamental}")

    low, high = AUDIBLE_RANGE
    harmonics = []
    for n in range(1, max_harmonics + 1):
        order = 2 * n - 1
        freq = fundamental * order
        if not low <= freq <= high:
            continue
        harmonics.append(Harmonic(
            index=n,
            order=order,
            frequency=freq,
            amplitude=offline_amplitude(n),
            quality=harmonic_quality(freq, 0.0),
            inharmonicity=0.0,
        ))

    return AcousticSolution(
        physical_length=profile.length,
        end_correction=end_correction(profile),
        effective_length=l_eff,
        sound_speed=sound_speed,
        base_frequency=base,
        radius_correction=r_corr,
        mouthpiece=None,
        mouthpiece_factor=MOUTH_IMPEDANCE_FACTOR,
        taper_factor=0.0,
        fundamental=fundamental,
        harmonics=tuple(harmonics),
    )
