"""Starweave exception hierarchy.

Centralised base classes so callers can catch generation and persistence
failures separately from programming errors.
"""


class StarweaveError(Exception):
    """Root of all Starweave domain exceptions."""


class ConfigurationError(StarweaveError):
    """Invalid or missing galaxy / manager configuration."""


class GenerationError(StarweaveError):
    """The generated galaxy violates an invariant the game depends on."""


class NoStartingSystemError(GenerationError):
    """No system with planets exists within the starting search radius."""


class PersistenceError(StarweaveError):
    """Errors during save / load / snapshot operations."""


class StorageError(PersistenceError):
    """A storage backend could not read or write."""


class SaveValidationError(PersistenceError):
    """A snapshot is malformed, incomplete, or from an incompatible version."""
