"""Lifecycle states for the galaxy manager."""

import enum


class ManagerState(enum.Enum):
    """Top-level manager states."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    PAUSED = "paused"
    SHUT_DOWN = "shut_down"
