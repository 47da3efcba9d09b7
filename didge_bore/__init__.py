"""
Didgeridoo Bore Designer

Acoustic analysis of didgeridoo bores. A bore is a list of (position,
diameter) measurements from the mouthpiece to the bell; the analysis
predicts the drone (fundamental) and its odd-harmonic series, each mapped
to the nearest equal-tempered note.

Quick start:
    from didge_bore import validate_and_build_profile, analyze
    from didge_bore import run_analysis, find_length_for_note

    # Validate pasted measurements (cm, mm) and analyze them
    validation = validate_and_build_profile("0 30\\n3 32\\n8 35\\n12 40\\n150 120")
    result = analyze(validation.profile)
    print(result.summary())

    # Same in one step, with problems reported as a tagged outcome
    outcome = run_analysis("0 30\\n150 120", unit_system='metric')

    # How long should a tapered bore be for a drone on D?
    estimate = find_length_for_note('D1', shape='tapered')
    print(f"{estimate.length * 100:.1f} cm")
"""

from .units import (
    METRIC, IMPERIAL, SI, UNIT_SYSTEMS,
    to_meters, from_meters, convert, parse_inches
)

from .geometry import (
    GeometryError,
    BorePoint,
    BoreSegment,
    BoreProfile,
    BoreTemplate,
    get_template,
    list_templates,
    TRADITIONAL, TAPERED, BELL, STRAIGHT, CONICAL, D155
)

from .builder import (
    ValidationError,
    ValidationResult,
    ScaleCorrection,
    parse_geometry_text,
    normalize_scale,
    validate_and_build_profile
)

from .atmosphere import (
    SoundSpeedProfile,
    get_sound_speed_profile,
    list_sound_speed_profiles,
    custom_sound_speed_profile,
    speed_of_sound,
    STANDARD, HOT, COLD, HIGH_ALTITUDE
)

from .notes import (
    NoteInfo,
    frequency_to_note,
    frequency_to_note_from_table,
    note_to_frequency,
    NOTE_FREQUENCY_TABLE,
    TUNING_REFERENCES
)

from .solver import (
    MouthpieceAnalysis,
    mouthpiece_correction,
    fundamental_frequency,
    harmonic_series,
    impedance_profile
)

from .offline import FREQUENCY_TABLE, analyze_offline

from .transfer_matrix import ImpedanceSpectrum, impedance_spectrum, find_resonances

from .engine import (
    HarmonicResult,
    AnalysisMetadata,
    AnalysisResult,
    Ok,
    ValidationFailed,
    GeometryFailed,
    analyze,
    assemble_result,
    run_analysis
)

from .design import LengthEstimate, find_length_for_frequency, find_length_for_note

__version__ = '0.1.0'

__all__ = [
    # Units
    'METRIC', 'IMPERIAL', 'SI', 'UNIT_SYSTEMS',
    'to_meters', 'from_meters', 'convert', 'parse_inches',

    # Geometry
    'GeometryError', 'BorePoint', 'BoreSegment', 'BoreProfile', 'BoreTemplate',
    'get_template', 'list_templates',
    'TRADITIONAL', 'TAPERED', 'BELL', 'STRAIGHT', 'CONICAL', 'D155',

    # Builder
    'ValidationError', 'ValidationResult', 'ScaleCorrection',
    'parse_geometry_text', 'normalize_scale', 'validate_and_build_profile',

    # Atmosphere
    'SoundSpeedProfile', 'get_sound_speed_profile', 'list_sound_speed_profiles',
    'custom_sound_speed_profile', 'speed_of_sound',
    'STANDARD', 'HOT', 'COLD', 'HIGH_ALTITUDE',

    # Notes
    'NoteInfo', 'frequency_to_note', 'frequency_to_note_from_table',
    'note_to_frequency', 'NOTE_FREQUENCY_TABLE', 'TUNING_REFERENCES',

    # Acoustics
    'MouthpieceAnalysis', 'mouthpiece_correction', 'fundamental_frequency',
    'harmonic_series', 'impedance_profile',
    'FREQUENCY_TABLE', 'analyze_offline',
    'ImpedanceSpectrum', 'impedance_spectrum', 'find_resonances',

    # Analysis
    'HarmonicResult', 'AnalysisMetadata', 'AnalysisResult',
    'Ok', 'ValidationFailed', 'GeometryFailed',
    'analyze', 'assemble_result', 'run_analysis',

    # Design
    'LengthEstimate', 'find_length_for_frequency', 'find_length_for_note',
]
