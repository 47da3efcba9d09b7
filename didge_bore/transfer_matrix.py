"""
Transfer-matrix model of the bore's input impedance.

The bore is cut into short cylindrical slices. Each slice of length l,
characteristic impedance Zc = rho*c/S and complex wavenumber k relates
pressure and volume flow at its two ends:

    [p1]   [ cos(kl)        j*Zc*sin(kl) ] [p2]
    [U1] = [ j*sin(kl)/Zc   cos(kl)      ] [U2]

Chaining the slices from mouthpiece to bell and terminating with the bell's
radiation impedance Zr gives the input impedance

    Z_in = (A*Zr + B) / (C*Zr + D)

whose peaks are the resonances the player's lips lock onto. Unlike the
closed-form solver this captures the effect of the full bore shape.

Wall losses use the boundary-layer approximation alpha = 3e-5 * sqrt(f) / r
(Np/m); radiation uses the Levine-Schwinger low-frequency limit for an
unflanged pipe.
"""

from dataclasses import dataclass
import math

import numpy as np
from scipy.signal import find_peaks, peak_widths

from .geometry import BoreProfile, GeometryError
from .solver import AIR_DENSITY, AUDIBLE_RANGE, SPEED_OF_SOUND, MAX_HARMONICS, check_sound_speed

MAX_SLICE_LENGTH = 0.005      # m
WALL_LOSS = 3e-5              # boundary-layer attenuation coefficient
RESONANCE_THRESHOLD = 0.4     # fraction of the largest peak
RADIATION_RESISTANCE = 0.25   # x (ka)²
RADIATION_REACTANCE = 0.61    # x ka
SPECTRUM_POINTS = 200
Q_REFERENCE = 20.0            # Q that counts as fully playable


@dataclass
class ImpedanceSpectrum:
    """Input impedance sampled over frequency."""
    frequencies: np.ndarray    # Hz
    impedance: np.ndarray      # Complex input impedance (Pa·s/m³)

    @property
    def magnitude(self) -> np.ndarray:
        return np.abs(self.impedance)

    @property
    def phase(self) -> np.ndarray:
        """Phase in radians."""
        return np.angle(self.impedance)

    def downsample(self, max_points: int = SPECTRUM_POINTS) -> 'ImpedanceSpectrum':
        """Evenly thinned copy with at most `max_points` samples."""
        if len(self.frequencies) <= max_points:
            return self
        idx = np.unique(np.linspace(0, len(self.frequencies) - 1, max_points).round().astype(int))
        return ImpedanceSpectrum(self.frequencies[idx], self.impedance[idx])

    def to_dict(self) -> dict:
        return {
            'frequencies': self.frequencies.tolist(),
            'magnitude': self.magnitude.tolist(),
            'phase': self.phase.tolist(),
        }


@dataclass
class Resonance:
    """One impedance peak."""
    frequency: float           # Hz, refined between grid points
    magnitude: float           # |Z_in| at the peak
    amplitude: float           # Peak magnitude relative to the largest peak
    q_factor: float            # Centre frequency / half-power bandwidth
    quality: float             # Q / Q_REFERENCE, capped at 1


def frequency_grid() -> np.ndarray:
    """Analysis frequencies: 0.5 Hz steps from 20 Hz to 100 Hz, then 1 Hz to 1 kHz."""
    return np.concatenate([
        np.arange(AUDIBLE_RANGE[0], 100.0, 0.5),
        np.arange(100.0, 1001.0, 1.0),
    ])


def slice_bore(profile: BoreProfile, max_slice: float = MAX_SLICE_LENGTH) -> tuple[np.ndarray, np.ndarray]:
    """
    Staircase approximation of the bore.

    Returns:
        lengths: Slice lengths (m)
        radii: Slice radii at the slice midpoints (m)
    """
    n_slices = max(1, math.ceil(profile.length / max_slice))
    edges = np.linspace(0, profile.length, n_slices + 1)
    mids = (edges[:-1] + edges[1:]) / 2
    return np.diff(edges), profile.diameter_at(mids) / 2


def radiation_impedance(k: np.ndarray, radius: float, zc: float) -> np.ndarray:
    """Unflanged open-end radiation impedance, low-frequency limit."""
    ka = k * radius
    return zc * (RADIATION_RESISTANCE * ka ** 2 + 1j * RADIATION_REACTANCE * ka)


def impedance_spectrum(
    profile: BoreProfile,
    sound_speed: float = SPEED_OF_SOUND,
    air_density: float = AIR_DENSITY,
    frequencies: np.ndarray = None
) -> ImpedanceSpectrum:
    """
    Input impedance seen from the mouthpiece.

    Args:
        profile: Validated bore
        sound_speed: Speed of sound (m/s)
        air_density: Air density (kg/m³)
        frequencies: Frequencies to evaluate (Hz), frequency_grid() if None
    """
    c = check_sound_speed(sound_speed)
    if air_density <= 0:
        raise GeometryError(f"Air density must be positive, got {air_density}")
    f = frequency_grid() if frequencies is None else np.asarray(frequencies, dtype=float)
    if np.any(f <= 0):
        raise ValueError("Frequencies must be positive")

    k = 2 * np.pi * f / c
    lengths, radii = slice_bore(profile)

    # Chain matrix elements, one value per frequency
    a = np.ones_like(f, dtype=complex)
    b = np.zeros_like(f, dtype=complex)
    cc = np.zeros_like(f, dtype=complex)
    d = np.ones_like(f, dtype=complex)

    for length, radius in zip(lengths, radii):
        zc = air_density * c / (np.pi * radius ** 2)
        alpha = WALL_LOSS * np.sqrt(f) / radius
        kl = (k + alpha - 1j * alpha) * length
        cos_kl, sin_kl = np.cos(kl), np.sin(kl)

        m11, m12 = cos_kl, 1j * zc * sin_kl
        m21, m22 = 1j * sin_kl / zc, cos_kl

        a, b, cc, d = (
            a * m11 + b * m21,
            a * m12 + b * m22,
            cc * m11 + d * m21,
            cc * m12 + d * m22,
        )

    bell_radius = profile.bell_diameter / 2
    zr = radiation_impedance(k, bell_radius, air_density * c / (np.pi * bell_radius ** 2))
    z_in = (a * zr + b) / (cc * zr + d)

    return ImpedanceSpectrum(frequencies=f, impedance=z_in)


def _refine_peak(freqs: np.ndarray, mag: np.ndarray, i: int) -> float:
    """Parabolic interpolation of a peak between its neighbours."""
    if i <= 0 or i >= len(mag) - 1:
        return float(freqs[i])
    y0, y1, y2 = mag[i - 1], mag[i], mag[i + 1]
    denom = y0 - 2 * y1 + y2
    if denom == 0:
        return float(freqs[i])
    offset = 0.5 * (y0 - y2) / denom
    return float(np.interp(i + offset, np.arange(len(freqs)), freqs))


def find_resonances(
    spectrum: ImpedanceSpectrum,
    max_resonances: int = MAX_HARMONICS,
    threshold: float = RESONANCE_THRESHOLD
) -> list[Resonance]:
    """
    Impedance peaks above `threshold` of the largest magnitude.

    Returns up to `max_resonances` peaks in ascending frequency.
    """
    mag = spectrum.magnitude
    freqs = spectrum.frequencies
    peak_max = mag.max()

    peaks, _ = find_peaks(mag, height=threshold * peak_max)
    peaks = peaks[:max_resonances]
    if len(peaks) == 0:
        return []

    # Width at the half-power level (1/sqrt(2) of the peak)
    widths, _, left, right = peak_widths(mag, peaks, rel_height=1 - 1 / np.sqrt(2))
    index = np.arange(len(freqs))
    f_left = np.interp(left, index, freqs)
    f_right = np.interp(right, index, freqs)

    resonances = []
    for i, peak in enumerate(peaks):
        f0 = _refine_peak(freqs, mag, peak)
        bandwidth = f_right[i] - f_left[i]
        q = f0 / bandwidth if bandwidth > 0 else Q_REFERENCE
        resonances.append(Resonance(
            frequency=f0,
            magnitude=float(mag[peak]),
            amplitude=float(mag[peak] / peak_max),
            q_factor=float(q),
            quality=float(min(1.0, q / Q_REFERENCE)),
        ))

    return resonances
