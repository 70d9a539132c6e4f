"""Stars and the stellar physics used to derive their properties.

Only mass is sampled; type follows from fixed mass thresholds and
luminosity, radius and color are derived from mass, type and temperature.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from ..constants import (
    BASE_TEMPERATURES,
    DEFAULT_BASE_TEMPERATURE,
    DEFAULT_LUMINOSITY_EXPONENT,
    LUMINOSITY_EXPONENTS,
    SOLAR_LIFETIME,
    SOLAR_TEMPERATURE,
    STAR_COOL_COLOR,
    STAR_MASS_THRESHOLDS,
    STAR_NAME_PREFIXES,
    STAR_NAME_SUFFIXES,
    STAR_TEMPERATURE_COLORS,
)
from .rng import SeededRandom


class StarType(enum.Enum):
    """Spectral classification."""

    O = "O"  # Blue supergiant
    B = "B"  # Blue giant
    A = "A"  # White
    F = "F"  # Yellow-white
    G = "G"  # Yellow, Sun-like
    K = "K"  # Orange
    M = "M"  # Red dwarf
    WHITE_DWARF = "WD"
    NEUTRON_STAR = "NS"
    BLACK_HOLE = "BH"


@dataclass
class Star:
    """A single star. Astrophysical fields are filled in by the generator."""

    id: str
    name: str
    x: float  # Light years from galactic center
    y: float
    star_type: StarType = StarType.G
    mass: float = 1.0  # Solar masses
    luminosity: float = 1.0  # Solar luminosities
    temperature: float = SOLAR_TEMPERATURE  # Kelvin
    age: float = 4600.0  # Million years
    metallicity: float = 0.02
    radius: float = 1.0  # Solar radii
    color: tuple[int, int, int] = (255, 255, 255)
    brightness: float = 1.0  # 0–1 for rendering

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)


def star_id(index: int) -> str:
    return f"star_{index:04d}"


def star_name(index: int) -> str:
    """Catalogue-style name derived from the generation index alone."""
    prefix = STAR_NAME_PREFIXES[index % len(STAR_NAME_PREFIXES)]
    suffix = STAR_NAME_SUFFIXES[(index // len(STAR_NAME_PREFIXES)) % len(STAR_NAME_SUFFIXES)]
    number = index // (len(STAR_NAME_PREFIXES) * len(STAR_NAME_SUFFIXES)) + 1
    if number > 1:
        return f"{prefix} {suffix} {number}"
    return f"{prefix} {suffix}"


# ---------------------------------------------------------------------------
# Stellar physics
# ---------------------------------------------------------------------------


def sample_stellar_mass(rng: SeededRandom) -> float:
    """Three-segment initial mass function approximation.

    80% of draws land in 0.1–0.8 M_sun, 15% in 0.8–3 and 5% in 3–50, each
    segment remapping its slice of the uniform draw through a power curve.
    """
    x = rng.next()
    if x < 0.8:
        return 0.1 + 0.7 * (x / 0.8) ** 2
    elif x < 0.95:
        return 0.8 + 2.2 * ((x - 0.8) / 0.15) ** 1.5
    else:
        return 3.0 + 47.0 * ((x - 0.95) / 0.05) ** 3


def star_type_for_mass(mass: float) -> StarType:
    for threshold, type_value in STAR_MASS_THRESHOLDS:
        if mass > threshold:
            return StarType(type_value)
    return StarType.M


def luminosity_for(mass: float, star_type: StarType) -> float:
    """Mass-luminosity relation L = M^alpha with a type-dependent alpha."""
    alpha = LUMINOSITY_EXPONENTS.get(star_type.value, DEFAULT_LUMINOSITY_EXPONENT)
    return mass ** alpha


def sample_temperature(rng: SeededRandom, star_type: StarType) -> float:
    base = BASE_TEMPERATURES.get(star_type.value, DEFAULT_BASE_TEMPERATURE)
    return base * rng.range(0.9, 1.1)


def radius_for(luminosity: float, temperature: float) -> float:
    """Stefan–Boltzmann inversion, R = sqrt(L) * (T_sun / T)^2."""
    return math.sqrt(luminosity) * (SOLAR_TEMPERATURE / temperature) ** 2


def main_sequence_lifetime(mass: float) -> float:
    """Lifetime in million years, scaling as M^-2.5."""
    return SOLAR_LIFETIME * mass ** -2.5


def sample_age(rng: SeededRandom, mass: float) -> float:
    # next() < 1, so the age always stays below the lifetime
    return rng.next() * main_sequence_lifetime(mass)


def color_for_temperature(temperature: float) -> tuple[int, int, int]:
    for threshold, color in STAR_TEMPERATURE_COLORS:
        if temperature > threshold:
            return color
    return STAR_COOL_COLOR


def sample_metallicity(rng: SeededRandom, distance_from_core: float, core_size: float) -> float:
    """Metallicity rises toward the core, with bounded noise."""
    core_influence = max(0.0, 1.0 - distance_from_core / core_size)
    return max(0.001, 0.02 * (0.5 + core_influence * 0.5) * rng.range(0.5, 1.5))


def derive_properties(star: Star, rng: SeededRandom, core_size: float) -> None:
    """Fill in every astrophysical field of ``star`` in a fixed draw order."""
    star.metallicity = sample_metallicity(rng, star.distance_to(0.0, 0.0), core_size)
    star.mass = sample_stellar_mass(rng)
    star.star_type = star_type_for_mass(star.mass)
    star.luminosity = luminosity_for(star.mass, star.star_type)
    star.temperature = sample_temperature(rng, star.star_type)
    star.radius = radius_for(star.luminosity, star.temperature)
    star.age = sample_age(rng, star.mass)
    star.color = color_for_temperature(star.temperature)
    star.brightness = min(1.0, star.luminosity / 100.0)
