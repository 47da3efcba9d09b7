"""
Analysis entry points and result assembly.

    from didge_bore import analyze, get_template

    result = analyze(get_template('traditional').profile)
    print(result.summary())

analyze() takes canonical points (meters) and returns an AnalysisResult.
run_analysis() takes raw user input, runs the builder first and reports the
outcome as one of Ok, ValidationFailed or GeometryFailed, so callers decide
how to present problems.
"""

from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
import logging
from typing import Mapping, Optional, Union

from .atmosphere import SoundSpeedProfile, get_sound_speed_profile, resolve_sound_speed
from .builder import ScaleCorrection, ValidationError, validate_and_build_profile
from .geometry import BorePoint, BoreProfile, GeometryError
from .notes import A4_FREQUENCY, frequency_to_note
from .offline import FREQUENCY_TABLE, FrequencyTable, analyze_offline
from .solver import (
    AIR_DENSITY, MAX_HARMONICS,
    Harmonic, ImpedancePoint, base_frequency, effective_length, impedance_profile, solve,
)
from .transfer_matrix import ImpedanceSpectrum, find_resonances, impedance_spectrum
from .units import METRIC

logger = logging.getLogger(__name__)

ONLINE_ADVANCED = 'online_advanced'
OFFLINE_SIMPLIFIED = 'offline_simplified'
TRANSFER_MATRIX = 'transfer_matrix'
CALCULATION_METHODS = (ONLINE_ADVANCED, OFFLINE_SIMPLIFIED, TRANSFER_MATRIX)

PLAUSIBLE_RANGE = (30.0, 200.0)   # Hz, typical drone frequencies
# A cone resonates up to twice the quarter-wave estimate, a cylinder's
# next resonance is at three times it
MISSED_FUNDAMENTAL_RATIO = 2.5


@dataclass(frozen=True)
class HarmonicResult:
    """One harmonic with its nearest note."""
    harmonic_index: int        # 1 = fundamental
    order: int                 # Nominal multiple of the fundamental (2n - 1)
    frequency: float           # Hz
    note: str                  # Pitch class, e.g. 'D#'
    octave: int
    cent_diff: float           # Deviation from the note (cents)
    amplitude: float           # Relative, 0-1
    quality: float             # Playability estimate, 0-1
    inharmonicity: float       # Relative deviation from the odd-integer ratio

    @property
    def note_name(self) -> str:
        return f"{self.note}{self.octave}"


@dataclass(frozen=True)
class AnalysisMetadata:
    """Derived bore quantities, in display units."""
    effective_length: float            # cm
    average_radius: float              # mm
    volume: float                      # cm³
    calculation_method: str
    sound_speed: float                 # m/s
    timestamp: str                     # ISO-8601, UTC
    physical_length: float             # cm
    reference_frequency: float         # A4 (Hz)
    mouthpiece_correction: Optional[float] = None
    impedance_profile: tuple[ImpedancePoint, ...] = ()
    impedance_spectrum: Optional[ImpedanceSpectrum] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Harmonic series and metadata of one analysis."""
    results: tuple[HarmonicResult, ...]
    metadata: AnalysisMetadata

    @property
    def fundamental(self) -> HarmonicResult:
        return self.results[0]

    @property
    def frequencies(self) -> list[float]:
        return [h.frequency for h in self.results]

    def to_dict(self) -> dict:
        """Plain-data copy, suitable for JSON."""
        meta = {f.name: getattr(self.metadata, f.name) for f in fields(self.metadata)}
        meta['impedance_profile'] = [asdict(p) for p in self.metadata.impedance_profile]
        if self.metadata.impedance_spectrum is not None:
            meta['impedance_spectrum'] = self.metadata.impedance_spectrum.to_dict()
        return {
            'results': [asdict(h) for h in self.results],
            'metadata': meta,
        }

    def summary(self) -> str:
        """Generate a human-readable summary."""
        meta = self.metadata
        lines = []
        lines.append("=" * 60)
        lines.append("BORE ANALYSIS")
        lines.append("=" * 60)
        lines.append(f"Method: {meta.calculation_method}")
        lines.append(f"Speed of sound: {meta.sound_speed:.1f} m/s   A4 = {meta.reference_frequency:g} Hz")
        lines.append(f"Physical length: {meta.physical_length:.1f} cm")
        lines.append(f"Effective length: {meta.effective_length:.1f} cm")
        lines.append(f"Average radius: {meta.average_radius:.1f} mm")
        lines.append(f"Volume: {meta.volume:.0f} cm³")
        if meta.mouthpiece_correction is not None:
            lines.append(f"Mouthpiece correction: {meta.mouthpiece_correction:.3f}")
        lines.append("")

        lines.append("HARMONICS:")
        lines.append(f"  {'#':<4} {'Freq (Hz)':>10} {'Note':>6} {'Cents':>8} {'Amp':>6} {'Quality':>8}")
        lines.append(f"  {'-'*4} {'-'*10} {'-'*6} {'-'*8} {'-'*6} {'-'*8}")
        for h in self.results:
            lines.append(
                f"  {h.harmonic_index:<4} {h.frequency:>10.2f} {h.note_name:>6}"
                f" {h.cent_diff:>+8.1f} {h.amplitude:>6.2f} {h.quality:>8.2f}"
            )
        lines.append("=" * 60)
        return "\n".join(lines)


# =============================================================================
# Assembly
# =============================================================================

def assemble_result(
    harmonics,
    profile: BoreProfile,
    *,
    effective_length: float,
    sound_speed: float,
    method: str,
    a4: float = A4_FREQUENCY,
    mouthpiece_correction: Optional[float] = None,
    impedance_profile=(),
    impedance_spectrum: Optional[ImpedanceSpectrum] = None,
    timestamp: Optional[str] = None
) -> AnalysisResult:
    """
    Annotate harmonics with notes and attach bore metadata.

    Harmonics are ordered by index; the fundamental must be present, so
    results[0] is always harmonic 1.

    Raises:
        GeometryError: The fundamental fell outside the audible range
    """
    ordered = sorted(harmonics, key=lambda h: h.index)
    if not ordered or ordered[0].index != 1:
        raise GeometryError("Fundamental is outside the audible range")

    results = []
    for h in ordered:
        note = frequency_to_note(h.frequency, a4)
        results.append(HarmonicResult(
            harmonic_index=h.index,
            order=h.order,
            frequency=h.frequency,
            note=note.note,
            octave=note.octave,
            cent_diff=note.cent_diff,
            amplitude=h.amplitude,
            quality=h.quality,
            inharmonicity=h.inharmonicity,
        ))

    metadata = AnalysisMetadata(
        effective_length=effective_length * 100,
        average_radius=profile.average_radius * 1000,
        volume=profile.volume * 1e6,
        calculation_method=method,
        sound_speed=sound_speed,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        physical_length=profile.length * 100,
        reference_frequency=a4,
        mouthpiece_correction=mouthpiece_correction,
        impedance_profile=tuple(impedance_profile),
        impedance_spectrum=impedance_spectrum,
    )
    return AnalysisResult(results=tuple(results), metadata=metadata)


# =============================================================================
# Entry points
# =============================================================================

def _as_profile(points) -> BoreProfile:
    if isinstance(points, BoreProfile):
        return points
    converted = []
    for p in points:
        if isinstance(p, Mapping):
            p = BorePoint(float(p['position']), float(p['diameter']))
        converted.append(p)
    return BoreProfile(tuple(converted))


def _resolve_air(sound_speed) -> tuple[float, float]:
    """(speed of sound, air density) for a speed, profile or profile name."""
    c = resolve_sound_speed(sound_speed)
    if isinstance(sound_speed, str):
        sound_speed = get_sound_speed_profile(sound_speed)
    if isinstance(sound_speed, SoundSpeedProfile):
        return c, sound_speed.air_density
    return c, AIR_DENSITY


def _transfer_matrix_harmonics(
    spectrum: ImpedanceSpectrum,
    max_harmonics: int,
    quarter_wave: float
) -> list[Harmonic]:
    """
    Number the impedance peaks as odd harmonics.

    `quarter_wave` is the closed-form estimate c/(4 L_eff). A lowest peak far
    above it means the real fundamental lies below the analysed band and the
    peaks cannot be numbered.
    """
    low, high = spectrum.frequencies[0], spectrum.frequencies[-1]
    resonances = find_resonances(spectrum, max_harmonics)
    if not resonances:
        raise GeometryError(f"No resonances found between {low:.0f} and {high:.0f} Hz")

    f1 = resonances[0].frequency
    if f1 > MISSED_FUNDAMENTAL_RATIO * quarter_wave:
        raise GeometryError(
            f"Lowest resonance {f1:.1f} Hz is far above the quarter-wave estimate "
            f"{quarter_wave:.1f} Hz; the fundamental is below {low:.0f} Hz"
        )

    harmonics = []
    for i, res in enumerate(resonances):
        order = 2 * i + 1
        harmonics.append(Harmonic(
            index=i + 1,
            order=order,
            frequency=res.frequency,
            amplitude=res.amplitude,
            quality=res.quality,
            inharmonicity=res.frequency / (f1 * order) - 1,
        ))
    return harmonics


def analyze(
    points,
    sound_speed: Union[None, float, str, SoundSpeedProfile] = None,
    max_harmonics: int = MAX_HARMONICS,
    method: str = ONLINE_ADVANCED,
    a4: float = A4_FREQUENCY,
    table: FrequencyTable = FREQUENCY_TABLE
) -> AnalysisResult:
    """
    Analyze a bore.

    Args:
        points: BoreProfile, or a sequence of BorePoints / (position, diameter)
                pairs / mappings, in meters
        sound_speed: Speed of sound (m/s), a SoundSpeedProfile or its name;
                     343 m/s if None
        max_harmonics: Number of odd harmonics to report
        method: 'online_advanced' (closed-form with mouthpiece analysis),
                'offline_simplified' (table fast path) or 'transfer_matrix'
                (impedance spectrum)
        a4: Tuning reference for note names (Hz)
        table: Precomputed table used by the offline method

    Returns:
        AnalysisResult with results[0] the fundamental

    Raises:
        ValueError: Unknown method or max_harmonics < 1
        GeometryError: Degenerate bore or non-positive sound speed
    """
    if method not in CALCULATION_METHODS:
        raise ValueError(
            f"Unknown method '{method}'. Available: {', '.join(CALCULATION_METHODS)}"
        )
    if int(max_harmonics) < 1:
        raise ValueError(f"max_harmonics must be at least 1, got {max_harmonics}")
    max_harmonics = int(max_harmonics)

    profile = _as_profile(points)
    c, rho = _resolve_air(sound_speed)

    spectrum = None
    mouthpiece = None
    if method == ONLINE_ADVANCED:
        solution = solve(profile, c, max_harmonics)
        harmonics = solution.harmonics
        mouthpiece = solution.mouthpiece_factor
        l_eff = solution.effective_length
    elif method == OFFLINE_SIMPLIFIED:
        solution = analyze_offline(profile, c, max_harmonics, table)
        harmonics = solution.harmonics
        l_eff = solution.effective_length
    else:
        full = impedance_spectrum(profile, c, rho)
        l_eff = effective_length(profile)
        harmonics = _transfer_matrix_harmonics(full, max_harmonics, base_frequency(l_eff, c))
        spectrum = full.downsample()

    result = assemble_result(
        harmonics,
        profile,
        effective_length=l_eff,
        sound_speed=c,
        method=method,
        a4=a4,
        mouthpiece_correction=mouthpiece,
        impedance_profile=impedance_profile(profile, c, rho),
        impedance_spectrum=spectrum,
    )

    low, high = PLAUSIBLE_RANGE
    f1 = result.fundamental.frequency
    if not low <= f1 <= high:
        logger.warning(
            "Fundamental %.1f Hz is outside the usual drone range (%.0f-%.0f Hz)",
            f1, low, high
        )
    return result


# =============================================================================
# Tagged outcomes
# =============================================================================

@dataclass(frozen=True)
class Ok:
    """Analysis succeeded."""
    result: AnalysisResult
    corrections: tuple[ScaleCorrection, ...] = ()
    ok = True


@dataclass(frozen=True)
class ValidationFailed:
    """The raw geometry was rejected by the builder."""
    errors: tuple[ValidationError, ...]
    ok = False


@dataclass(frozen=True)
class GeometryFailed:
    """The bore passed validation but cannot be solved."""
    reason: str
    ok = False


AnalysisOutcome = Union[Ok, ValidationFailed, GeometryFailed]


def run_analysis(
    raw_geometry,
    unit_system: str = METRIC,
    auto_correct: bool = True,
    **options
) -> AnalysisOutcome:
    """
    Validate raw input and analyze it.

    Args:
        raw_geometry: Text or point sequence in `unit_system` units
        unit_system: 'metric', 'imperial' or 'si'
        auto_correct: Apply the builder's unit heuristics
        **options: Passed to analyze() (sound_speed, max_harmonics, method, a4)
    """
    validation = validate_and_build_profile(
        raw_geometry, unit_system, auto_correct, options.get('sound_speed')
    )
    if not validation.valid:
        return ValidationFailed(validation.errors)

    try:
        result = analyze(validation.profile, **options)
    except GeometryError as e:
        logger.debug("Geometry failure: %s", e)
        return GeometryFailed(str(e))

    return Ok(result, validation.corrections)
