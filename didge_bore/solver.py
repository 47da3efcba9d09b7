"""
Acoustic solver for didgeridoo bores.

Models the bore as a closed-open tube (closed at the player's lips, open at
the bell). The fundamental follows the quarter-wave formula

    f1 = c / (4 * L_eff)

scaled by empirical corrections for the mean bore radius and for the
mouthpiece region (the first 30 mm), which dominates the coupling between
the player's lips and the air column. Only odd harmonics are supported by a
closed-open tube, so the series is f1 * (2n - 1).

The correction constants below are calibration parameters fitted by ear
against real instruments, not derived values. Adjust them if measurements
disagree.
"""

from dataclasses import dataclass
import math
from typing import Optional

import numpy as np

from .geometry import BoreProfile, GeometryError


# =============================================================================
# Calibration constants
# =============================================================================

SPEED_OF_SOUND = 343.0             # m/s, dry air at 20 °C
END_CORRECTION_FACTOR = 0.6        # x bell radius, unflanged open end
RADIUS_DAMPING = 0.1               # per meter of mean radius

MOUTHPIECE_LENGTH = 0.03           # m
MOUTHPIECE_REFERENCE_RADIUS = 0.015
MOUTHPIECE_SIZE_SLOPE = 2.0
SIZE_CORRECTION_LIMITS = (0.75, 0.95)
OPTIMAL_TAPER_RATE = 0.3           # mm of diameter growth per mm of length
TAPER_PENALTY = 0.1
TAPER_CORRECTION_LIMITS = (0.9, 1.1)

# Stand-in for the mouthpiece analysis when it is skipped (offline path).
# Typical mouthpieces give a combined correction of 0.92-0.95.
MOUTH_IMPEDANCE_FACTOR = 0.93

MAX_HARMONICS = 12
AUDIBLE_RANGE = (20.0, 20000.0)    # Hz

TAPER_SHIFT = 0.05                 # Ratio stretch per unit taper factor
INHARMONICITY_PENALTY = 0.5

AIR_DENSITY = 1.204                # kg/m³ at 20 °C


@dataclass(frozen=True)
class MouthpieceAnalysis:
    """Breakdown of the mouthpiece correction."""
    mean_radius: float          # Length-weighted radius over the window (m)
    taper_rate: float           # Diameter growth per unit length (mm/mm)
    window: float               # Analysed length (m), 30 mm or the bore length
    size_correction: float
    taper_correction: float

    @property
    def combined(self) -> float:
        return self.size_correction * self.taper_correction


@dataclass(frozen=True)
class Harmonic:
    """One resonance of the odd-harmonic series."""
    index: int                  # 1 = fundamental
    order: int                  # Frequency multiple, 2*index - 1
    frequency: float            # Hz
    amplitude: float            # Relative, 0-1
    quality: float              # Playability estimate, 0-1
    inharmonicity: float        # Predicted relative stretch of the ratio


@dataclass(frozen=True)
class ImpedancePoint:
    """Characteristic impedance at the start of one bore segment."""
    position: float             # cm from the mouthpiece
    impedance: float            # rho*c/S (Pa·s/m³)
    reflection: float           # Pressure reflection coefficient into the segment


@dataclass(frozen=True)
class AcousticSolution:
    """Intermediate quantities of a single solve."""
    physical_length: float      # m
    end_correction: float       # m
    effective_length: float     # m
    sound_speed: float          # m/s
    base_frequency: float       # Hz, uncorrected quarter-wave
    radius_correction: float
    mouthpiece: Optional[MouthpieceAnalysis]
    mouthpiece_factor: float    # Combined correction actually applied
    taper_factor: float
    fundamental: float          # Hz
    harmonics: tuple[Harmonic, ...]


def _clamp(value: float, limits: tuple[float, float]) -> float:
    lo, hi = limits
    return min(max(value, lo), hi)


def check_sound_speed(sound_speed: float) -> float:
    """Return the speed as a float, rejecting non-positive values."""
    c = float(sound_speed)
    if not math.isfinite(c) or c <= 0:
        raise GeometryError(f"Speed of sound must be positive, got {sound_speed}")
    return c


# =============================================================================
# Length and frequency
# =============================================================================

def end_correction(profile: BoreProfile) -> float:
    """Radiation end correction at the bell (m)."""
    return END_CORRECTION_FACTOR * profile.bell_diameter / 2


def effective_length(profile: BoreProfile) -> float:
    """Acoustic length: physical length plus the bell end correction (m)."""
    length = profile.length + end_correction(profile)
    if length <= 0:
        raise GeometryError(f"Effective length must be positive, got {length}")
    return length


def base_frequency(length: float, sound_speed: float = SPEED_OF_SOUND) -> float:
    """Quarter-wave resonance of a closed-open tube of `length` meters."""
    if length <= 0:
        raise GeometryError(f"Tube length must be positive, got {length}")
    return check_sound_speed(sound_speed) / (4 * length)


def radius_correction(profile: BoreProfile) -> float:
    """Linear damping of the fundamental with mean bore radius."""
    return 1.0 - profile.average_radius * RADIUS_DAMPING


def mouthpiece_correction(profile: BoreProfile) -> MouthpieceAnalysis:
    """
    Correction for lip coupling in the first 30 mm of bore.

    Two factors multiply:
    - size: narrow mouthpieces couple less efficiently
      1 - (r - 0.015) * 2, clamped to [0.75, 0.95]
    - taper: penalises flare rates away from 0.3 mm/mm
      1 - |rate - 0.3| * 0.1, clamped to [0.9, 1.1]

    r is the length-weighted mean radius over the window; rate is the
    diameter growth across the window. Bores shorter than 30 mm are
    analysed over their full length.
    """
    window = min(MOUTHPIECE_LENGTH, profile.length)

    weighted = 0.0
    for seg in profile.segments:
        if seg.start_position >= window:
            break
        end = min(seg.end_position, window)
        mean_d = (seg.start_diameter + seg.diameter_at(end)) / 2
        weighted += mean_d * (end - seg.start_position)
    mean_radius = weighted / window / 2

    # Diameter growth in mm per mm of length is dimensionless
    rate = (profile.diameter_at(window) - profile.mouth_diameter) / window

    size = _clamp(
        1.0 - (mean_radius - MOUTHPIECE_REFERENCE_RADIUS) * MOUTHPIECE_SIZE_SLOPE,
        SIZE_CORRECTION_LIMITS
    )
    taper = _clamp(
        1.0 - abs(rate - OPTIMAL_TAPER_RATE) * TAPER_PENALTY,
        TAPER_CORRECTION_LIMITS
    )

    return MouthpieceAnalysis(
        mean_radius=mean_radius,
        taper_rate=rate,
        window=window,
        size_correction=size,
        taper_correction=taper,
    )


def taper_factor(profile: BoreProfile) -> float:
    """
    Overall bore flare: mean of the largest and the average |ln(d2/d1)|
    across segments. 0 for a cylinder.
    """
    logs = np.abs(np.log([seg.taper_ratio for seg in profile.segments]))
    return float((logs.max() + logs.mean()) / 2)


def fundamental_frequency(
    profile: BoreProfile,
    sound_speed: float = SPEED_OF_SOUND,
    mouthpiece_factor: Optional[float] = None
) -> float:
    """
    Drone frequency of the bore (Hz).

    Args:
        profile: Validated bore
        sound_speed: Speed of sound (m/s)
        mouthpiece_factor: Override for the mouthpiece correction; the
                           full mouthpiece analysis is used if None
    """
    if mouthpiece_factor is None:
        mouthpiece_factor = mouthpiece_correction(profile).combined
    return (
        base_frequency(effective_length(profile), sound_speed)
        * radius_correction(profile)
        * mouthpiece_factor
    )


# =============================================================================
# Harmonic series
# =============================================================================

def harmonic_quality(frequency: float, flare: float) -> float:
    """
    Playability estimate, 0-1.

    Low resonances are easiest to sound; a flared bore helps the upper ones.
    """
    return min(1.0, max(0.3, 1 - (frequency - 60) / 400) + min(0.3, flare))


def harmonic_series(
    fundamental: float,
    max_harmonics: int = MAX_HARMONICS,
    flare: float = 0.0
) -> tuple[Harmonic, ...]:
    """
    Odd-harmonic series of a closed-open tube.

    Frequencies are exact odd multiples of the fundamental; those outside
    the audible range are dropped. Amplitude decays as 1/sqrt(n) and is
    reduced further by the ratio stretch a flared bore is expected to cause.

    Args:
        fundamental: Drone frequency (Hz)
        max_harmonics: Number of odd harmonics to generate
        flare: Taper factor of the bore (see taper_factor)
    """
    if max_harmonics < 1:
        raise ValueError(f"max_harmonics must be at least 1, got {max_harmonics}")
    if not math.isfinite(fundamental) or fundamental <= 0:
        raise GeometryError(f"Fundamental must be positive, got {fundamental}")

    low, high = AUDIBLE_RANGE
    harmonics = []
    for n in range(1, max_harmonics + 1):
        order = 2 * n - 1
        freq = fundamental * order
        if not low <= freq <= high:
            continue

        inharmonicity = flare * math.log(order) * TAPER_SHIFT
        amplitude = (1 / math.sqrt(n)) * (1 - INHARMONICITY_PENALTY * abs(inharmonicity))

        harmonics.append(Harmonic(
            index=n,
            order=order,
            frequency=freq,
            amplitude=_clamp(amplitude, (0.0, 1.0)),
            quality=harmonic_quality(freq, flare),
            inharmonicity=inharmonicity,
        ))

    return tuple(harmonics)


def solve(
    profile: BoreProfile,
    sound_speed: float = SPEED_OF_SOUND,
    max_harmonics: int = MAX_HARMONICS
) -> AcousticSolution:
    """Full closed-open tube analysis with the mouthpiece correction."""
    c = check_sound_speed(sound_speed)
    l_eff = effective_length(profile)
    base = base_frequency(l_eff, c)
    r_corr = radius_correction(profile)
    mouthpiece = mouthpiece_correction(profile)
    flare = taper_factor(profile)

    fundamental = base * r_corr * mouthpiece.combined
    return AcousticSolution(
        physical_length=profile.length,
        end_correction=end_correction(profile),
        effective_length=l_eff,
        sound_speed=c,
        base_frequency=base,
        radius_correction=r_corr,
        mouthpiece=mouthpiece,
        mouthpiece_factor=mouthpiece.combined,
        taper_factor=flare,
        fundamental=fundamental,
        harmonics=harmonic_series(fundamental, max_harmonics, flare),
    )


# =============================================================================
# Impedance profile
# =============================================================================

def impedance_profile(
    profile: BoreProfile,
    sound_speed: float = SPEED_OF_SOUND,
    air_density: float = AIR_DENSITY
) -> list[ImpedancePoint]:
    """
    Characteristic impedance along the bore.

    One point per segment: Z = rho * c / S with S from the segment's mean
    radius, and the reflection coefficient for a wave passing from the
    segment's start radius r1 to its end radius r2:

        R = ((r1/r2)² - 1) / ((r1/r2)² + 1)
    """
    c = check_sound_speed(sound_speed)
    points = []
    for seg in profile.segments:
        area = math.pi * seg.avg_radius ** 2
        area_ratio = (seg.start_diameter / seg.end_diameter) ** 2
        points.append(ImpedancePoint(
            position=seg.start_position * 100,
            impedance=air_density * c / area,
            reflection=(area_ratio - 1) / (area_ratio + 1),
        ))
    return points
