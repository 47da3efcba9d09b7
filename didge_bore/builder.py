"""
Bore model builder.

Turns free-form user input (pasted text or a list of points) into a
validated, canonical BoreProfile. Problems with the input are collected as
ValidationError records instead of being raised, so a caller can show all
of them at once:

    result = validate_and_build_profile("0 30\\n150 120", unit_system='metric')
    if result.valid:
        profile = result.profile
    else:
        for err in result.errors:
            print(err.message)

Pipeline:
1. parse      - text or point sequence -> (line, position, diameter) in input units
2. convert    - input units -> meters
3. normalize  - optional heuristic rescale for values typed in the wrong unit
4. validate   - ordering, duplicates, point count, physical ranges,
                audible drone
5. build      - shift the first point to the mouth, construct BoreProfile
"""

from dataclasses import dataclass, field
import logging
import math
import re
from typing import Mapping, NamedTuple, Optional, Union

from .atmosphere import SoundSpeedProfile, resolve_sound_speed
from .geometry import BorePoint, BoreProfile, GeometryError
from .solver import AUDIBLE_RANGE, fundamental_frequency
from .units import IMPERIAL, METRIC, check_unit_system, parse_value, to_meters

logger = logging.getLogger(__name__)

# Physical limits for a playable bore (meters)
MAX_POSITION = 10.0
MIN_DIAMETER = 0.010
MAX_DIAMETER = 1.000
MIN_POINTS = 2

# Heuristic thresholds (meters)
TINY_DIAMETER = 0.001
SHORT_BORE = 0.05

_COMMENT = re.compile(r'(#|//).*$')
_SEPARATOR = re.compile(r'[\s,]+')
# Inch tokens: mixed fraction, bare fraction or decimal, optional inch mark
_INCH_TOKEN = re.compile(r'-?(?:\d+(?:\.\d+)?[ \t-]+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?)"?')


@dataclass(frozen=True)
class ValidationError:
    """One problem found in the input geometry."""
    code: str
    message: str
    line: Optional[int] = None        # 1-based line (text) or entry (sequence)
    details: Mapping = field(default_factory=dict)


@dataclass(frozen=True)
class ScaleCorrection:
    """A heuristic rescale applied to one axis of the input."""
    axis: str          # 'position' or 'diameter'
    factor: float
    reason: str


class ParsedPoint(NamedTuple):
    line: int
    position: float
    diameter: float


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate_and_build_profile."""
    valid: bool
    points: tuple[BorePoint, ...]
    errors: tuple[ValidationError, ...]
    corrections: tuple[ScaleCorrection, ...] = ()

    @property
    def profile(self) -> Optional[BoreProfile]:
        """The validated bore, or None when the input was rejected."""
        if not self.valid:
            return None
        return BoreProfile(self.points)


# =============================================================================
# Parsing
# =============================================================================

def _split_tokens(entry: str, unit_system: str) -> list[str]:
    if unit_system == IMPERIAL and ('/' in entry or '"' in entry):
        tokens = _INCH_TOKEN.findall(entry)
        # "0 3/4" reads as one mixed fraction; fall back to plain separators
        if len(tokens) >= 2:
            return tokens
    return [t for t in _SEPARATOR.split(entry) if t]


def _check_pair(line: int, position: float, diameter: float, errors: list) -> bool:
    if not (math.isfinite(position) and math.isfinite(diameter)):
        errors.append(ValidationError(
            'invalid_number', f"Line {line}: values must be finite numbers", line
        ))
        return False
    if position < 0:
        errors.append(ValidationError(
            'negative_position',
            f"Line {line}: position cannot be negative ({position:g})",
            line, {'position': position}
        ))
        return False
    if diameter <= 0:
        errors.append(ValidationError(
            'non_positive_diameter',
            f"Line {line}: diameter must be greater than zero ({diameter:g})",
            line, {'diameter': diameter}
        ))
        return False
    return True


def parse_geometry_text(text: str, unit_system: str = METRIC) -> tuple[list[ParsedPoint], list[ValidationError]]:
    """
    Parse pasted bore measurements.

    One (position, diameter) pair per line, separated by whitespace or a
    comma. ';' also separates entries, and '#' or '//' start a comment.
    In imperial input, fractions such as 3/4 or 1 1/8" are accepted.

    Returns:
        points: Parsed pairs in the input unit system, with line numbers
        errors: One ValidationError per rejected entry
    """
    unit_system = check_unit_system(unit_system)
    points, errors = [], []

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = _COMMENT.sub('', raw_line)
        for entry in line.split(';'):
            entry = entry.strip()
            if not entry:
                continue

            tokens = _split_tokens(entry, unit_system)
            if len(tokens) != 2:
                errors.append(ValidationError(
                    'invalid_format',
                    f"Line {line_no}: expected 'position diameter', got '{entry}'",
                    line_no
                ))
                continue

            try:
                position = parse_value(tokens[0], unit_system)
                diameter = parse_value(tokens[1], unit_system)
            except ValueError:
                errors.append(ValidationError(
                    'invalid_number',
                    f"Line {line_no}: could not read numbers from '{entry}'",
                    line_no
                ))
                continue

            if _check_pair(line_no, position, diameter, errors):
                points.append(ParsedPoint(line_no, position, diameter))

    return points, errors


def _point_values(item):
    if isinstance(item, Mapping):
        return item['position'], item['diameter']
    if hasattr(item, 'position') and hasattr(item, 'diameter'):
        return item.position, item.diameter
    position, diameter = item
    return position, diameter


def parse_geometry_points(items, unit_system: str = METRIC) -> tuple[list[ParsedPoint], list[ValidationError]]:
    """
    Read a sequence of points given in the input unit system.

    Each item may be a mapping with 'position' and 'diameter' keys, an
    object with those attributes, or a (position, diameter) pair. Values
    may be numbers or strings.
    """
    unit_system = check_unit_system(unit_system)
    points, errors = [], []

    for entry_no, item in enumerate(items, start=1):
        try:
            raw_position, raw_diameter = _point_values(item)
            position = parse_value(str(raw_position), unit_system)
            diameter = parse_value(str(raw_diameter), unit_system)
        except (KeyError, TypeError, ValueError):
            errors.append(ValidationError(
                'invalid_format',
                f"Entry {entry_no}: expected a position and a diameter, got {item!r}",
                entry_no
            ))
            continue

        if _check_pair(entry_no, position, diameter, errors):
            points.append(ParsedPoint(entry_no, position, diameter))

    return points, errors


# =============================================================================
# Unit heuristics
# =============================================================================

def normalize_scale(points: list[ParsedPoint]) -> tuple[list[ParsedPoint], list[ScaleCorrection]]:
    """
    Rescale an axis whose values were evidently typed in the wrong unit.

    Points are in meters. An axis is only touched when every value on it is
    implausible and the rescale makes every value plausible:
    - all diameters under 1 mm: they were meters, multiply by 1000
    - all diameters over 1 m: they were millimeters, divide by 1000
    - bore shorter than 5 cm: positions were meters, multiply by 100
    """
    if not points:
        return points, []

    corrections = []
    diameters = [p.diameter for p in points]
    dia_factor = 1.0

    if all(d < TINY_DIAMETER for d in diameters):
        if all(MIN_DIAMETER <= d * 1000 <= MAX_DIAMETER for d in diameters):
            dia_factor = 1000.0
            corrections.append(ScaleCorrection(
                'diameter', dia_factor, "all diameters under 1 mm, read as meters"
            ))
    elif all(d > MAX_DIAMETER for d in diameters):
        if all(MIN_DIAMETER <= d / 1000 <= MAX_DIAMETER for d in diameters):
            dia_factor = 0.001
            corrections.append(ScaleCorrection(
                'diameter', dia_factor, "all diameters over 1 m, read as millimeters"
            ))

    pos_factor = 1.0
    longest = max(p.position for p in points)
    if 0 < longest < SHORT_BORE and longest * 100 <= MAX_POSITION:
        pos_factor = 100.0
        corrections.append(ScaleCorrection(
            'position', pos_factor, "bore shorter than 5 cm, positions read as meters"
        ))

    for c in corrections:
        logger.debug("Rescaled %s by %g: %s", c.axis, c.factor, c.reason)

    if not corrections:
        return points, []

    scaled = [
        ParsedPoint(p.line, p.position * pos_factor, p.diameter * dia_factor)
        for p in points
    ]
    return scaled, corrections


# =============================================================================
# Validation
# =============================================================================

def _check_order(points: list[ParsedPoint]) -> list[ValidationError]:
    errors = []
    for prev, curr in zip(points, points[1:]):
        if curr.position < prev.position:
            errors.append(ValidationError(
                'non_monotonic',
                f"Line {curr.line}: position {curr.position * 100:.1f} cm is before "
                f"the previous point ({prev.position * 100:.1f} cm)",
                curr.line, {'position': curr.position, 'previous': prev.position}
            ))
        elif curr.position == prev.position:
            errors.append(ValidationError(
                'duplicate_position',
                f"Line {curr.line}: position {curr.position * 100:.1f} cm is repeated",
                curr.line, {'position': curr.position}
            ))
    return errors


def _check_ranges(points: list[ParsedPoint]) -> list[ValidationError]:
    errors = []
    for p in points:
        if p.position > MAX_POSITION:
            errors.append(ValidationError(
                'position_out_of_range',
                f"Line {p.line}: position {p.position:.2f} m exceeds {MAX_POSITION:.0f} m",
                p.line, {'position': p.position}
            ))
        if not MIN_DIAMETER <= p.diameter <= MAX_DIAMETER:
            errors.append(ValidationError(
                'diameter_out_of_range',
                f"Line {p.line}: diameter {p.diameter * 1000:.1f} mm is outside "
                f"{MIN_DIAMETER * 1000:.0f}-{MAX_DIAMETER * 1000:.0f} mm",
                p.line, {'diameter': p.diameter}
            ))
    return errors


def _check_audible(profile: BoreProfile, sound_speed: float) -> list[ValidationError]:
    # An unusable speed is reported by the solver itself
    if not math.isfinite(sound_speed) or sound_speed <= 0:
        return []
    f1 = fundamental_frequency(profile, sound_speed)
    low = AUDIBLE_RANGE[0]
    if f1 >= low:
        return []
    return [ValidationError(
        'inaudible_fundamental',
        f"Bore of {profile.length * 100:.1f} cm drones at {f1:.1f} Hz, "
        f"below the audible limit of {low:.0f} Hz",
        details={'frequency': f1, 'length': profile.length}
    )]


def validate_and_build_profile(
    raw_geometry,
    unit_system: str = METRIC,
    auto_correct: bool = True,
    sound_speed: Union[None, float, str, SoundSpeedProfile] = None
) -> ValidationResult:
    """
    Validate raw geometry and build a canonical bore.

    Args:
        raw_geometry: Text (one pair per line) or a sequence of points
        unit_system: 'metric' (cm, mm), 'imperial' (inches) or 'si' (meters)
        auto_correct: Apply the normalize_scale heuristics
        sound_speed: Air used to check that the drone is audible
                     (speed, profile or profile name; standard air if None)

    Returns:
        ValidationResult. When valid, positions strictly increase and
        start at 0; otherwise points is empty and errors explains why.

    Raises:
        ValueError: Unknown unit system or atmosphere name
    """
    unit_system = check_unit_system(unit_system)

    if isinstance(raw_geometry, str):
        parsed, errors = parse_geometry_text(raw_geometry, unit_system)
    else:
        parsed, errors = parse_geometry_points(raw_geometry, unit_system)

    points = [
        ParsedPoint(p.line, *to_meters(p.position, p.diameter, unit_system))
        for p in parsed
    ]

    corrections = []
    if auto_correct:
        points, corrections = normalize_scale(points)

    errors.extend(_check_order(points))
    if len(points) < MIN_POINTS:
        errors.append(ValidationError(
            'insufficient_points',
            f"At least {MIN_POINTS} valid points are needed, got {len(points)}",
            details={'count': len(points)}
        ))
    errors.extend(_check_ranges(points))

    if not errors:
        origin = points[0].position
        bore_points = tuple(
            BorePoint(p.position - origin, p.diameter) for p in points
        )
        try:
            profile = BoreProfile(bore_points)
        except GeometryError as e:
            errors.append(ValidationError('degenerate_geometry', str(e)))
        else:
            errors.extend(_check_audible(profile, resolve_sound_speed(sound_speed)))
            if not errors:
                return ValidationResult(True, bore_points, (), tuple(corrections))

    logger.debug("Rejected geometry with %d error(s)", len(errors))
    return ValidationResult(False, (), tuple(errors), tuple(corrections))
