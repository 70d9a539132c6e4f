"""Byte-string storage backends.

Persistence only needs single-key ``put``/``get``; where the bytes end up
(a file, memory, something a host application provides) is injected.

Default file location comes from platformdirs:
  Linux:   ~/.local/share/starweave/<key>.json
  macOS:   ~/Library/Application Support/starweave/<key>.json
  Windows: C:/Users/.../AppData/Local/starweave/<key>.json
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from platformdirs import user_data_dir

from ..constants import PROJECT_NAME
from ..exceptions import StorageError

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageBackend(Protocol):
    """put returns False when the write was rejected; get returns None when absent."""

    def put(self, key: str, data: bytes) -> bool: ...

    def get(self, key: str) -> bytes | None: ...


class MemoryStorage:
    """Dict-backed storage for tests and headless runs."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}

    def put(self, key: str, data: bytes) -> bool:
        self.data[key] = bytes(data)
        return True

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileStorage:
    """One JSON file per key in a directory."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else Path(user_data_dir(PROJECT_NAME))

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def put(self, key: str, data: bytes) -> bool:
        target = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write beside the target then swap, so a crash never leaves half a save
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp, target)
            except OSError:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error("Failed to write %s: %s", target, exc)
            return False
        return True

    def get(self, key: str) -> bytes | None:
        target = self.path_for(key)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Failed to read {target}: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class FallbackStorage:
    """Try each backend in order: write to the first that accepts, read the first hit."""

    def __init__(self, *backends: StorageBackend) -> None:
        if not backends:
            raise ValueError("FallbackStorage needs at least one backend")
        self.backends = list(backends)

    def put(self, key: str, data: bytes) -> bool:
        for backend in self.backends:
            try:
                if backend.put(key, data):
                    return True
            except StorageError as exc:
                logger.warning("%s rejected write of %r: %s", type(backend).__name__, key, exc)
                continue
            logger.warning("%s rejected write of %r, trying next backend", type(backend).__name__, key)
        raise StorageError(f"All {len(self.backends)} storage backends failed to write {key!r}")

    def get(self, key: str) -> bytes | None:
        for backend in self.backends:
            try:
                data = backend.get(key)
            except StorageError as exc:
                logger.warning("%s failed to read %r: %s", type(backend).__name__, key, exc)
                continue
            if data is not None:
                return data
        return None
