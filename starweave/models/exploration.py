"""Exploration progress: the only galaxy state gameplay mutates.

Generated astrophysical data is read-only; everything the player changes
lives here and is persisted independently of the star dataset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class VisitedLocation:
    """An entry in the travel log."""

    system_id: str
    timestamp: float  # Unix seconds
    coordinates: tuple[float, float]
    planet_id: str | None = None
    notes: str = ""


@dataclass
class TradeRoute:
    id: str
    from_system_id: str
    to_system_id: str
    commodity: str
    profit_margin: float
    discovered: bool = False


@dataclass
class ExplorationState:
    """Explored systems, discovered planets, travel log and counters."""

    explored_systems: set[str] = field(default_factory=set)
    discovered_planets: set[str] = field(default_factory=set)
    visited_locations: list[VisitedLocation] = field(default_factory=list)
    current_system_id: str = ""
    home_system_id: str = ""

    systems_visited: int = 0
    planets_explored: int = 0
    distance_traveled: float = 0.0  # Light years
    discovery_progress: float = 0.0  # 0–1

    reputation: dict[str, float] = field(default_factory=dict)  # Faction → standing
    trade_routes: list[TradeRoute] = field(default_factory=list)

    def mark_system_explored(self, system_id: str) -> bool:
        """Add ``system_id`` to the explored set. Returns False if already there."""
        if system_id in self.explored_systems:
            return False
        self.explored_systems.add(system_id)
        return True

    def mark_planet_discovered(self, planet_id: str) -> bool:
        if planet_id in self.discovered_planets:
            return False
        self.discovered_planets.add(planet_id)
        self.planets_explored += 1
        return True

    def update_progress(self, total_systems: int) -> None:
        self.discovery_progress = len(self.explored_systems) / total_systems if total_systems > 0 else 0.0


# ── Serialise helpers ─────────────────────────────────────────────────

def _location_to_dict(loc: VisitedLocation) -> dict:
    data: dict[str, Any] = {
        "systemId": loc.system_id,
        "timestamp": loc.timestamp,
        "coordinates": {"x": loc.coordinates[0], "y": loc.coordinates[1]},
    }
    if loc.planet_id is not None:
        data["planetId"] = loc.planet_id
    if loc.notes:
        data["notes"] = loc.notes
    return data


def _mapping(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise TypeError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _location_from_dict(d: dict) -> VisitedLocation:
    d = _mapping(d, "visited location")
    coords = _mapping(d.get("coordinates", {}), "location coordinates")
    return VisitedLocation(
        system_id=d["systemId"],
        timestamp=d.get("timestamp", 0.0),
        coordinates=(coords.get("x", 0.0), coords.get("y", 0.0)),
        planet_id=d.get("planetId"),
        notes=d.get("notes", ""),
    )


def _route_to_dict(r: TradeRoute) -> dict:
    return {
        "id": r.id,
        "fromSystemId": r.from_system_id,
        "toSystemId": r.to_system_id,
        "commodity": r.commodity,
        "profitMargin": r.profit_margin,
        "discovered": r.discovered,
    }


def _route_from_dict(d: dict) -> TradeRoute:
    d = _mapping(d, "trade route")
    return TradeRoute(
        id=d["id"],
        from_system_id=d["fromSystemId"],
        to_system_id=d["toSystemId"],
        commodity=d["commodity"],
        profit_margin=d.get("profitMargin", 0.0),
        discovered=d.get("discovered", False),
    )


def player_data_to_dict(state: ExplorationState) -> dict:
    return {
        "currentSystemId": state.current_system_id,
        "homeSystemId": state.home_system_id,
        "totalSystemsVisited": state.systems_visited,
        "totalPlanetsExplored": state.planets_explored,
        "totalDistanceTraveled": state.distance_traveled,
        "galaxyDiscoveryProgress": state.discovery_progress,
    }


def exploration_to_snapshot(state: ExplorationState) -> dict:
    """Snapshot fields owned by the exploration state.

    Sets are written sorted so identical state always serialises identically.
    """
    return {
        "playerData": player_data_to_dict(state),
        "exploredSystems": sorted(state.explored_systems),
        "discoveredPlanets": sorted(state.discovered_planets),
        "visitedLocations": [_location_to_dict(loc) for loc in state.visited_locations],
        "reputation": dict(state.reputation),
        "tradeRoutes": [_route_to_dict(r) for r in state.trade_routes],
    }


def exploration_from_snapshot(data: dict) -> ExplorationState:
    player = _mapping(data.get("playerData", {}), "playerData")
    return ExplorationState(
        explored_systems=set(data.get("exploredSystems", [])),
        discovered_planets=set(data.get("discoveredPlanets", [])),
        visited_locations=[_location_from_dict(d) for d in data.get("visitedLocations", [])],
        current_system_id=player.get("currentSystemId", ""),
        home_system_id=player.get("homeSystemId", ""),
        systems_visited=player.get("totalSystemsVisited", 0),
        planets_explored=player.get("totalPlanetsExplored", 0),
        distance_traveled=player.get("totalDistanceTraveled", 0.0),
        discovery_progress=player.get("galaxyDiscoveryProgress", 0.0),
        reputation=dict(_mapping(data.get("reputation", {}), "reputation")),
        trade_routes=[_route_from_dict(r) for r in data.get("tradeRoutes", [])],
    )
