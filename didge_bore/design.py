"""
Inverse design: how long should the bore be for a given drone?

A reference shape is stretched or shrunk along its length (diameters kept)
until its fundamental matches the target.
"""

from dataclasses import dataclass
import math
from typing import Union

from scipy.optimize import brentq

from .atmosphere import SoundSpeedProfile, resolve_sound_speed
from .geometry import BoreProfile, BoreTemplate, TRADITIONAL, get_template
from .notes import A4_FREQUENCY, note_to_frequency
from .solver import fundamental_frequency

LENGTH_BOUNDS = (0.3, 5.0)   # m


@dataclass(frozen=True)
class LengthEstimate:
    """A bore scaled to hit a target fundamental."""
    target_frequency: float    # Hz
    length: float              # m
    profile: BoreProfile
    achieved_frequency: float  # Hz

    @property
    def cent_error(self) -> float:
        return 1200 * math.log2(self.achieved_frequency / self.target_frequency)


def _shape_profile(shape) -> BoreProfile:
    if shape is None:
        return TRADITIONAL.profile
    if isinstance(shape, str):
        return get_template(shape).profile
    if isinstance(shape, BoreTemplate):
        return shape.profile
    return shape


def find_length_for_frequency(
    target_hz: float,
    shape: Union[None, str, BoreTemplate, BoreProfile] = None,
    sound_speed: Union[None, float, str, SoundSpeedProfile] = None,
    bounds: tuple[float, float] = LENGTH_BOUNDS
) -> LengthEstimate:
    """
    Find the bore length whose fundamental is `target_hz`.

    Args:
        target_hz: Desired drone frequency (Hz)
        shape: Template name, template or profile to scale (traditional if None)
        sound_speed: Speed of sound (m/s), profile or profile name
        bounds: Search range for the length (m)

    Returns:
        LengthEstimate with the scaled profile

    Raises:
        ValueError: Target not reachable within `bounds`
    """
    if not math.isfinite(target_hz) or target_hz <= 0:
        raise ValueError(f"Target frequency must be positive, got {target_hz}")

    base = _shape_profile(shape)
    c = resolve_sound_speed(sound_speed)

    def f1_at(length: float) -> float:
        return fundamental_frequency(base.scaled_to(length), c)

    lo, hi = bounds
    f_high, f_low = f1_at(lo), f1_at(hi)
    if not f_low <= target_hz <= f_high:
        raise ValueError(
            f"Target {target_hz:.2f} Hz is outside the reachable range "
            f"{f_low:.2f}-{f_high:.2f} Hz for lengths {lo}-{hi} m"
        )

    length = brentq(lambda L: f1_at(L) - target_hz, lo, hi, xtol=1e-6)
    profile = base.scaled_to(length)
    return LengthEstimate(
        target_frequency=target_hz,
        length=length,
        profile=profile,
        achieved_frequency=fundamental_frequency(profile, c),
    )


def find_length_for_note(
    note: str,
    shape: Union[None, str, BoreTemplate, BoreProfile] = None,
    sound_speed: Union[None, float, str, SoundSpeedProfile] = None,
    a4: float = A4_FREQUENCY,
    bounds: tuple[float, float] = LENGTH_BOUNDS
) -> LengthEstimate:
    """Bore length for a drone on `note` (e.g. 'D2')."""
    return find_length_for_frequency(note_to_frequency(note, a4), shape, sound_speed, bounds)
