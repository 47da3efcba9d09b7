"""
Geometry definitions for didgeridoo bores.

A bore is described by (position, diameter) samples measured from the
mouthpiece. Between samples the diameter varies linearly, so each pair of
neighbouring points forms a conical (or cylindrical) segment.

All values are in meters.
"""

from dataclasses import dataclass
import math
import numpy as np


class GeometryError(ValueError):
    """A bore profile is degenerate (zero length, non-positive diameter, ...)."""


@dataclass(frozen=True)
class BorePoint:
    """A single bore measurement."""
    position: float   # Distance from the mouthpiece (m)
    diameter: float   # Internal diameter at that position (m)

    @property
    def radius(self) -> float:
        return self.diameter / 2


@dataclass(frozen=True)
class BoreSegment:
    """
    The interval between two neighbouring bore points.

    Derived from a BoreProfile, never stored. The diameter tapers linearly
    from `start_diameter` to `end_diameter`.
    """
    start_position: float
    length: float
    start_diameter: float
    end_diameter: float

    @property
    def end_position(self) -> float:
        return self.start_position + self.length

    @property
    def avg_diameter(self) -> float:
        return (self.start_diameter + self.end_diameter) / 2

    @property
    def avg_radius(self) -> float:
        return self.avg_diameter / 2

    @property
    def taper_ratio(self) -> float:
        """End/start radius ratio (1.0 for a cylinder)."""
        return self.end_diameter / self.start_diameter

    def diameter_at(self, position: float) -> float:
        """Diameter at an absolute position inside this segment."""
        t = (position - self.start_position) / self.length
        t = min(max(t, 0.0), 1.0)
        return self.start_diameter + t * (self.end_diameter - self.start_diameter)

    def volume(self) -> float:
        """Volume using the segment's mean diameter (m³)."""
        return math.pi * self.avg_radius ** 2 * self.length


@dataclass(frozen=True)
class BoreProfile:
    """
    An ordered, validated bore.

    Invariants (checked on construction, GeometryError otherwise):
    - at least two points
    - the first point sits at the mouth (position 0)
    - positions strictly increase
    - every diameter is positive and finite
    """
    points: tuple[BorePoint, ...]

    def __post_init__(self):
        points = tuple(
            p if isinstance(p, BorePoint) else BorePoint(float(p[0]), float(p[1]))
            for p in self.points
        )
        object.__setattr__(self, 'points', points)

        if len(points) < 2:
            raise GeometryError(f"A bore needs at least 2 points, got {len(points)}")
        for p in points:
            if not (math.isfinite(p.position) and math.isfinite(p.diameter)):
                raise GeometryError(f"Non-finite bore point: {p}")
            if p.diameter <= 0:
                raise GeometryError(f"Diameter must be positive at {p.position:.4f} m")
        if points[0].position != 0:
            raise GeometryError(
                f"First point must be at the mouth (0 m), got {points[0].position:.4f} m"
            )
        for prev, curr in zip(points, points[1:]):
            if curr.position <= prev.position:
                raise GeometryError(
                    f"Positions must strictly increase ({prev.position:.4f} m -> {curr.position:.4f} m)"
                )

    @classmethod
    def from_pairs(cls, pairs) -> 'BoreProfile':
        """Build from (position_m, diameter_m) pairs."""
        return cls(tuple(BorePoint(float(p), float(d)) for p, d in pairs))

    @property
    def positions(self) -> np.ndarray:
        return np.array([p.position for p in self.points])

    @property
    def diameters(self) -> np.ndarray:
        return np.array([p.diameter for p in self.points])

    @property
    def length(self) -> float:
        """Physical bore length (m)."""
        return self.points[-1].position

    @property
    def mouth_diameter(self) -> float:
        return self.points[0].diameter

    @property
    def bell_diameter(self) -> float:
        return self.points[-1].diameter

    @property
    def segments(self) -> list[BoreSegment]:
        return [
            BoreSegment(
                start_position=a.position,
                length=b.position - a.position,
                start_diameter=a.diameter,
                end_diameter=b.diameter,
            )
            for a, b in zip(self.points, self.points[1:])
        ]

    @property
    def average_radius(self) -> float:
        """Mean of the sampled diameters, halved (m)."""
        return float(np.mean(self.diameters)) / 2

    @property
    def volume(self) -> float:
        """Internal volume (m³), one mean-diameter cylinder per segment."""
        return sum(seg.volume() for seg in self.segments)

    def diameter_at(self, position):
        """
        Diameter at `position` (scalar or array), linearly interpolated.

        Positions outside the bore are clamped to the end diameters.
        """
        result = np.interp(position, self.positions, self.diameters)
        return float(result) if np.ndim(result) == 0 else result

    def get_profile(self, n_points: int = 100) -> tuple[np.ndarray, np.ndarray]:
        """
        Sample the bore at evenly spaced positions.

        Returns:
            x: Position array (meters)
            d: Diameter array (meters)
        """
        x = np.linspace(0, self.length, n_points)
        return x, self.diameter_at(x)

    def scaled_to(self, length: float) -> 'BoreProfile':
        """Stretch or shrink the bore to `length`, keeping its diameters."""
        if length <= 0:
            raise GeometryError(f"Bore length must be positive, got {length}")
        factor = length / self.length
        return BoreProfile(tuple(
            BorePoint(p.position * factor, p.diameter) for p in self.points
        ))


# =============================================================================
# Bore templates
# =============================================================================

@dataclass(frozen=True)
class BoreTemplate:
    """A named reference bore shape."""
    name: str
    pairs: tuple[tuple[float, float], ...]   # (position m, diameter m)
    description: str = ""

    @property
    def profile(self) -> BoreProfile:
        return BoreProfile.from_pairs(self.pairs)


TRADITIONAL = BoreTemplate(
    name="traditional",
    pairs=((0.0, 0.030), (0.030, 0.032), (0.080, 0.035), (0.120, 0.040), (1.50, 0.120)),
    description="Default 150 cm bore with a gentle mouthpiece flare and wide bell"
)

TAPERED = BoreTemplate(
    name="tapered",
    pairs=((0.0, 0.030), (0.20, 0.035), (0.50, 0.045), (1.00, 0.060), (1.50, 0.080)),
    description="Steady expansion from 30 mm to 80 mm"
)

BELL = BoreTemplate(
    name="bell",
    pairs=((0.0, 0.030), (0.50, 0.035), (1.00, 0.045), (1.30, 0.065), (1.50, 0.090)),
    description="Narrow body opening into a bell over the last 50 cm"
)

STRAIGHT = BoreTemplate(
    name="straight",
    pairs=((0.0, 0.040), (0.50, 0.040), (1.00, 0.040), (1.50, 0.040)),
    description="Cylindrical 40 mm tube (PVC pipe)"
)

CONICAL = BoreTemplate(
    name="conical",
    pairs=((0.0, 0.025), (0.30, 0.035), (0.60, 0.045), (0.90, 0.055), (1.20, 0.065), (1.50, 0.075)),
    description="Linear cone from 25 mm to 75 mm"
)

D155 = BoreTemplate(
    name="d155",
    pairs=(
        (0.0, 0.030), (0.10, 0.030), (0.20, 0.030), (0.30, 0.030), (0.40, 0.030),
        (0.50, 0.030), (0.60, 0.030), (0.70, 0.035), (0.80, 0.035), (0.90, 0.040),
        (1.00, 0.040), (1.10, 0.040), (1.20, 0.045), (1.30, 0.055), (1.40, 0.050),
        (1.50, 0.075), (1.55, 0.075),
    ),
    description="155 cm professional bore in D"
)

TEMPLATES = {
    "traditional": TRADITIONAL,
    "default": TRADITIONAL,
    "tapered": TAPERED,
    "bell": BELL,
    "straight": STRAIGHT,
    "pvc": STRAIGHT,
    "conical": CONICAL,
    "cone": CONICAL,
    "d155": D155,
}


def get_template(name: str) -> BoreTemplate:
    """Get a bore template by name (case-insensitive)."""
    key = name.lower().replace(" ", "_").replace("-", "_")
    if key not in TEMPLATES:
        available = ", ".join(sorted(set(TEMPLATES.keys())))
        raise ValueError(f"Unknown template '{name}'. Available: {available}")
    return TEMPLATES[key]


def list_templates() -> list[str]:
    """List all template names."""
    return sorted(set(TEMPLATES.keys()))
