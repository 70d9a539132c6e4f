"""Planets, moons and asteroid belts.

Each derived attribute is its own weighted decision:

================  ===========================================================
attribute         rule
================  ===========================================================
type              by orbital zone relative to the habitable zone
mass              gas giant 50–500, ice giant 10–50, rocky 0.1–3.0 (Earths)
radius            mass ** 0.27
temperature       278.5 * (L / d^2) ** 0.25 * U(0.8, 1.2)
orbit period      sqrt(d^3 / M_star) * 365.25 days
atmosphere        giants always; < 0.1 Earths or > 2000 K never; else 70%
atmosphere type   > 1000 K toxic, gas giant hydrogen, ice giant methane,
                  < 200 K thin, otherwise carbon dioxide
rings             10%
surface           fixed per type
water             273 K < T < 373 K and not a gas giant
life              water + atmosphere on terrestrial/ocean worlds, 25%
moons             gas giant U[5,20), ice giant U[2,10), > 1 Earth U[0,3),
                  otherwise 30% for a single moon
================  ===========================================================
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field

from ..constants import (
    DAYS_PER_YEAR,
    DEFAULT_SURFACE_COLOR,
    EQUILIBRIUM_TEMP,
    HZ_INNER_FLUX,
    HZ_OUTER_FLUX,
    PLANET_SURFACE_COLORS,
)
from .rng import SeededRandom
from .stars import Star


class PlanetType(enum.Enum):
    """Planet classification."""

    TERRESTRIAL = "terrestrial"
    GAS_GIANT = "gas_giant"
    ICE_GIANT = "ice_giant"
    DESERT = "desert"
    OCEAN = "ocean"
    VOLCANIC = "volcanic"
    FROZEN = "frozen"
    TOXIC = "toxic"


class SurfaceType(enum.Enum):
    ROCKY = "rocky"
    DESERT = "desert"
    OCEAN = "ocean"
    ICE = "ice"
    LAVA = "lava"
    GAS = "gas"
    TOXIC = "toxic"
    CRYSTALLINE = "crystalline"


class AtmosphereType(enum.Enum):
    NONE = "none"
    THIN = "thin"
    THICK = "thick"
    TOXIC = "toxic"
    METHANE = "methane"
    HYDROGEN = "hydrogen"
    CARBON_DIOXIDE = "carbon_dioxide"


class MoonType(enum.Enum):
    ROCKY = "rocky"
    ICY = "icy"
    CAPTURED_ASTEROID = "captured_asteroid"


class BeltComposition(enum.Enum):
    ROCKY = "rocky"
    METALLIC = "metallic"
    ICY = "icy"


_GIANTS = (PlanetType.GAS_GIANT, PlanetType.ICE_GIANT)

_SURFACES: dict[PlanetType, SurfaceType] = {
    PlanetType.OCEAN: SurfaceType.OCEAN,
    PlanetType.DESERT: SurfaceType.DESERT,
    PlanetType.VOLCANIC: SurfaceType.LAVA,
    PlanetType.FROZEN: SurfaceType.ICE,
    PlanetType.GAS_GIANT: SurfaceType.GAS,
    PlanetType.ICE_GIANT: SurfaceType.GAS,
    PlanetType.TOXIC: SurfaceType.TOXIC,
}

# Zone-conditioned candidate types
_OUTER_TYPES = [PlanetType.GAS_GIANT, PlanetType.ICE_GIANT, PlanetType.FROZEN]
_HABITABLE_TYPES = [PlanetType.TERRESTRIAL, PlanetType.OCEAN, PlanetType.DESERT]
_TEMPERATE_TYPES = [PlanetType.TERRESTRIAL, PlanetType.DESERT, PlanetType.FROZEN]

_MOON_TYPES = list(MoonType)
_BELT_COMPOSITIONS = list(BeltComposition)


@dataclass
class Moon:
    """A natural satellite."""

    id: str
    name: str
    planet_id: str
    orbit_distance: float  # Planet radii
    orbit_period: float  # Hours
    radius: float  # Earth radii
    mass: float  # Earth masses
    moon_type: MoonType
    tidally_locked: bool


@dataclass
class Planet:
    """A planet orbiting a star."""

    id: str
    name: str
    star_id: str
    orbit_distance: float  # AU
    orbit_period: float  # Days
    radius: float  # Earth radii
    mass: float  # Earth masses
    planet_type: PlanetType
    temperature: float  # Kelvin
    has_atmosphere: bool
    has_rings: bool
    surface_type: SurfaceType
    surface_color: tuple[int, int, int]
    has_water: bool
    has_life: bool = False
    atmosphere_type: AtmosphereType | None = None
    moons: list[Moon] = field(default_factory=list)


@dataclass
class AsteroidBelt:
    id: str
    inner_radius: float  # AU
    outer_radius: float
    density: float  # 0–1
    composition: BeltComposition


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


def habitable_zone(luminosity: float) -> tuple[float, float]:
    """Inner and outer habitable-zone bounds in AU."""
    return math.sqrt(luminosity / HZ_INNER_FLUX), math.sqrt(luminosity / HZ_OUTER_FLUX)


def orbit_period(distance: float, star_mass: float) -> float:
    """Kepler's third law, in days."""
    return math.sqrt(distance ** 3 / star_mass) * DAYS_PER_YEAR


def planet_radius(mass: float) -> float:
    return mass ** 0.27


def to_roman(number: int) -> str:
    numerals = [(1000, "M"), (900, "CM"), (500, "D"), (400, "CD"), (100, "C"), (90, "XC"),
                (50, "L"), (40, "XL"), (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I")]
    result = ""
    for value, symbol in numerals:
        while number >= value:
            result += symbol
            number -= value
    return result


# ---------------------------------------------------------------------------
# Weighted decisions
# ---------------------------------------------------------------------------


def _choose_type(rng: SeededRandom, distance: float, hz_inner: float, hz_outer: float) -> PlanetType:
    if distance < hz_inner * 0.5:
        return PlanetType.VOLCANIC
    elif distance > hz_outer * 2:
        return rng.choice(_OUTER_TYPES)
    elif hz_inner <= distance <= hz_outer:
        return rng.choice(_HABITABLE_TYPES)
    else:
        return rng.choice(_TEMPERATE_TYPES)


def _sample_mass(rng: SeededRandom, planet_type: PlanetType) -> float:
    if planet_type == PlanetType.GAS_GIANT:
        return rng.range(50, 500)
    elif planet_type == PlanetType.ICE_GIANT:
        return rng.range(10, 50)
    return rng.range(0.1, 3.0)


def _sample_temperature(rng: SeededRandom, luminosity: float, distance: float) -> float:
    flux = luminosity / (distance * distance)
    return EQUILIBRIUM_TEMP * flux ** 0.25 * rng.range(0.8, 1.2)


def _has_atmosphere(rng: SeededRandom, planet_type: PlanetType, mass: float, temperature: float) -> bool:
    if planet_type in _GIANTS:
        return True
    if mass < 0.1 or temperature > 2000:
        return False
    return rng.next() < 0.7


def _atmosphere_type(planet_type: PlanetType, temperature: float) -> AtmosphereType:
    if temperature > 1000:
        return AtmosphereType.TOXIC
    if planet_type == PlanetType.GAS_GIANT:
        return AtmosphereType.HYDROGEN
    if planet_type == PlanetType.ICE_GIANT:
        return AtmosphereType.METHANE
    if temperature < 200:
        return AtmosphereType.THIN
    return AtmosphereType.CARBON_DIOXIDE


def _has_life(rng: SeededRandom, planet: Planet) -> bool:
    if not (planet.has_water and planet.has_atmosphere):
        return False
    if planet.planet_type not in (PlanetType.TERRESTRIAL, PlanetType.OCEAN):
        return False
    return rng.next() < 0.25


def _moon_count(rng: SeededRandom, planet_type: PlanetType, mass: float) -> int:
    if planet_type == PlanetType.GAS_GIANT:
        return rng.integer(5, 19)
    if planet_type == PlanetType.ICE_GIANT:
        return rng.integer(2, 9)
    if mass > 1.0:
        return rng.integer(0, 2)
    return 1 if rng.next() < 0.3 else 0


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def generate_moon(rng: SeededRandom, planet: Planet, index: int) -> Moon:
    return Moon(
        id=f"{planet.id}_moon_{index}",
        name=f"{planet.name} {chr(ord('a') + index)}",
        planet_id=planet.id,
        orbit_distance=rng.range(3, 20),
        orbit_period=rng.range(12, 168),
        radius=rng.range(0.1, 0.5),
        mass=rng.range(0.01, 0.2),
        moon_type=rng.choice(_MOON_TYPES),
        tidally_locked=rng.next() < 0.8,
    )


def generate_planet(
    rng: SeededRandom,
    star: Star,
    index: int,
    distance: float,
    hz_inner: float,
    hz_outer: float,
) -> Planet:
    """Generate the ``index``-th planet of ``star`` at ``distance`` AU."""
    planet_type = _choose_type(rng, distance, hz_inner, hz_outer)
    mass = _sample_mass(rng, planet_type)
    temperature = _sample_temperature(rng, star.luminosity, distance)

    planet_id = f"{star.id}_planet_{index}"
    planet = Planet(
        id=planet_id,
        name=f"{star.name} {to_roman(index + 1)}",
        star_id=star.id,
        orbit_distance=distance,
        orbit_period=orbit_period(distance, star.mass),
        radius=planet_radius(mass),
        mass=mass,
        planet_type=planet_type,
        temperature=temperature,
        has_atmosphere=_has_atmosphere(rng, planet_type, mass, temperature),
        has_rings=rng.next() < 0.1,
        surface_type=_SURFACES.get(planet_type, SurfaceType.ROCKY),
        surface_color=PLANET_SURFACE_COLORS.get(planet_type.value, DEFAULT_SURFACE_COLOR),
        has_water=273 < temperature < 373 and planet_type != PlanetType.GAS_GIANT,
    )
    if planet.has_atmosphere:
        planet.atmosphere_type = _atmosphere_type(planet_type, temperature)
    planet.has_life = _has_life(rng, planet)

    for j in range(_moon_count(rng, planet_type, mass)):
        planet.moons.append(generate_moon(rng, planet, j))
    return planet


def generate_belt(rng: SeededRandom, star: Star, inner_radius: float) -> AsteroidBelt:
    return AsteroidBelt(
        id=f"{star.id}_belt_1",
        inner_radius=inner_radius,
        outer_radius=inner_radius * 1.5,
        density=rng.range(0.3, 0.8),
        composition=rng.choice(_BELT_COMPOSITIONS),
    )
