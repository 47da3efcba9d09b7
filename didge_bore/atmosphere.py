"""
Air conditions for acoustic analysis.

The speed of sound sets the absolute pitch of every resonance, so it is an
injected parameter rather than a constant buried in the solver. Each
profile records the conditions it represents:
- temperature (°C)
- relative humidity (%)
- pressure (hPa)
- speed: speed of sound (m/s)

The built-in speeds are rounded reference values; custom profiles derive
the speed from temperature and humidity.
"""

from dataclasses import dataclass
import math
from typing import Optional, Union

STANDARD_PRESSURE = 1013.25   # hPa
GAS_CONSTANT_AIR = 287.05     # J/(kg·K), dry air


@dataclass(frozen=True)
class SoundSpeedProfile:
    """Atmospheric conditions for an analysis."""
    name: str
    temperature: float           # °C
    humidity: float              # % relative humidity
    pressure: float              # hPa
    speed: float                 # Speed of sound (m/s)
    description: str = ""

    @property
    def air_density(self) -> float:
        """Dry-air density at this temperature and pressure (kg/m³)."""
        return air_density(self.temperature, self.pressure)


def speed_of_sound(temperature: float, humidity: float = 50.0) -> float:
    """
    Speed of sound in air (m/s).

    Ideal-gas temperature dependence plus a small linear humidity term.
    Pressure has no first-order effect and is ignored.
    """
    if temperature <= -273.15:
        raise ValueError(f"Temperature below absolute zero: {temperature} °C")
    return 331.3 * math.sqrt(1 + temperature / 273.15) + 0.0124 * humidity


def air_density(temperature: float = 20.0, pressure: float = STANDARD_PRESSURE) -> float:
    """Dry-air density from the ideal gas law (kg/m³)."""
    return pressure * 100 / (GAS_CONSTANT_AIR * (temperature + 273.15))


# =============================================================================
# Reference profiles
# =============================================================================

STANDARD = SoundSpeedProfile(
    name="standard",
    temperature=20,
    humidity=50,
    pressure=1013,
    speed=343,
    description="Room temperature at sea level"
)

HOT = SoundSpeedProfile(
    name="hot",
    temperature=30,
    humidity=60,
    pressure=1013,
    speed=349,
    description="Warm, humid day"
)

COLD = SoundSpeedProfile(
    name="cold",
    temperature=0,
    humidity=40,
    pressure=1013,
    speed=331,
    description="Freezing outdoor conditions"
)

HIGH_ALTITUDE = SoundSpeedProfile(
    name="high_altitude",
    temperature=20,
    humidity=30,
    pressure=850,
    speed=335,
    description="Around 1500 m above sea level"
)


SOUND_SPEED_PROFILES = {
    "standard": STANDARD,
    "normal": STANDARD,
    "hot": HOT,
    "warm": HOT,
    "cold": COLD,
    "high_altitude": HIGH_ALTITUDE,
    "altitude": HIGH_ALTITUDE,
}


def get_sound_speed_profile(name: str) -> SoundSpeedProfile:
    """Get an atmosphere profile by name (case-insensitive)."""
    key = name.lower().replace(" ", "_").replace("-", "_")
    if key not in SOUND_SPEED_PROFILES:
        available = ", ".join(sorted(set(SOUND_SPEED_PROFILES.keys())))
        raise ValueError(f"Unknown atmosphere '{name}'. Available: {available}")
    return SOUND_SPEED_PROFILES[key]


def list_sound_speed_profiles() -> list[str]:
    """List all atmosphere profile names."""
    return sorted(set(SOUND_SPEED_PROFILES.keys()))


def custom_sound_speed_profile(
    name: str,
    temperature: float,
    humidity: float = 50.0,
    pressure: float = STANDARD_PRESSURE,
    speed: Optional[float] = None
) -> SoundSpeedProfile:
    """
    Create a custom atmosphere.

    Args:
        name: Profile name
        temperature: Air temperature (°C)
        humidity: Relative humidity (%)
        pressure: Air pressure (hPa)
        speed: Measured speed of sound (m/s) - derived from temperature
               and humidity if not provided

    Returns:
        SoundSpeedProfile instance
    """
    if speed is None:
        speed = speed_of_sound(temperature, humidity)
    if speed <= 0:
        raise ValueError(f"Speed of sound must be positive, got {speed}")

    return SoundSpeedProfile(
        name=name,
        temperature=temperature,
        humidity=humidity,
        pressure=pressure,
        speed=speed,
        description="Custom atmosphere"
    )


def resolve_sound_speed(value: Union[None, float, str, SoundSpeedProfile]) -> float:
    """Accept a speed (m/s), a profile, or a profile name; default is standard air."""
    if value is None:
        return float(STANDARD.speed)
    if isinstance(value, SoundSpeedProfile):
        return float(value.speed)
    if isinstance(value, str):
        return float(get_sound_speed_profile(value).speed)
    return float(value)
