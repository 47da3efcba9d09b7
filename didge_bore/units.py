"""
Unit systems for bore geometry input.

Three input conventions are supported:
- 'metric': position in centimeters, diameter in millimeters
- 'imperial': position and diameter both in inches
- 'si': both in meters (already canonical)

Everything downstream of the builder works in meters. Conversion back to
input units is provided for callers that need to echo a profile.
"""

import re

METRIC = 'metric'
IMPERIAL = 'imperial'
SI = 'si'
UNIT_SYSTEMS = (METRIC, IMPERIAL, SI)

INCH = 0.0254  # m

# (position scale, diameter scale) to meters
_TO_METERS = {
    METRIC: (0.01, 0.001),
    IMPERIAL: (INCH, INCH),
    SI: (1.0, 1.0),
}

_FRACTION = re.compile(
    r'^\s*(?:(?P<whole>\d+(?:\.\d+)?)(?:[\s-]+))?(?P<num>\d+)\s*/\s*(?P<den>\d+)\s*$'
)


def check_unit_system(unit_system: str) -> str:
    """Normalise and validate a unit system name."""
    key = str(unit_system).strip().lower()
    if key not in _TO_METERS:
        raise ValueError(
            f"Unknown unit system '{unit_system}'. Available: {', '.join(UNIT_SYSTEMS)}"
        )
    return key


def to_meters(position: float, diameter: float, unit_system: str = METRIC) -> tuple[float, float]:
    """Convert one (position, diameter) pair from input units to meters."""
    pos_scale, dia_scale = _TO_METERS[check_unit_system(unit_system)]
    return position * pos_scale, diameter * dia_scale


def from_meters(position: float, diameter: float, unit_system: str = METRIC) -> tuple[float, float]:
    """Convert one (position, diameter) pair from meters to input units."""
    pos_scale, dia_scale = _TO_METERS[check_unit_system(unit_system)]
    return position / pos_scale, diameter / dia_scale


def convert(position: float, diameter: float, from_system: str, to_system: str) -> tuple[float, float]:
    """Convert a pair between input unit systems (e.g. metric -> imperial)."""
    if check_unit_system(from_system) == check_unit_system(to_system):
        return position, diameter
    return from_meters(*to_meters(position, diameter, from_system), to_system)


def parse_inches(text: str) -> float:
    """
    Parse an inch value, allowing woodworking fractions.

    Accepts '12', '12.5', '3/4', '1 1/8', '1-1/8' with an optional trailing
    inch mark ("). Raises ValueError for anything else.
    """
    cleaned = text.replace('"', '').replace("''", '').strip()
    match = _FRACTION.match(cleaned)
    if match is None:
        return float(cleaned)

    den = int(match.group('den'))
    if den == 0:
        raise ValueError(f"Zero denominator in '{text}'")
    whole = float(match.group('whole') or 0.0)
    return whole + int(match.group('num')) / den


def parse_value(text: str, unit_system: str = METRIC) -> float:
    """Parse a single numeric token in the given unit system's notation."""
    if check_unit_system(unit_system) == IMPERIAL:
        return parse_inches(text)
    return float(text)
