"""Spatial chunks: cached subsets of systems around a point.

Keys quantize the center to 1,000 ly and the radius to 100 ly so nearby
repeated queries share an entry. The cache is bounded and evicts the least
recently used chunk.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import CHUNK_CACHE_CAPACITY, CHUNK_POSITION_STEP, CHUNK_RADIUS_STEP

if TYPE_CHECKING:
    from .galaxy import StarSystem


@dataclass(frozen=True)
class ChunkOptions:
    center: tuple[float, float]
    radius: float  # Light years
    max_systems: int
    include_unexplored: bool = True


def round_half_up(value: float) -> int:
    """Nearest integer, ties rounded up."""
    return math.floor(value + 0.5)


def _quantize(value: float, step: int) -> int:
    return round_half_up(value / step) * step


def chunk_key(options: ChunkOptions) -> str:
    x = _quantize(options.center[0], CHUNK_POSITION_STEP)
    y = _quantize(options.center[1], CHUNK_POSITION_STEP)
    r = _quantize(options.radius, CHUNK_RADIUS_STEP)
    scope = "all" if options.include_unexplored else "explored"
    return f"chunk_{x}_{y}_{r}_{scope}"


class ChunkCache:
    """Least-recently-used map of chunk key → systems."""

    def __init__(self, capacity: int = CHUNK_CACHE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[str, list[StarSystem]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> list[StarSystem] | None:
        systems = self._entries.get(key)
        if systems is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return systems

    def put(self, key: str, systems: list[StarSystem]) -> None:
        self._entries[key] = systems
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
