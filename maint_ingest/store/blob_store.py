from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

"""Opaque string-keyed blob stores.

The pipeline never patches part of a blob: every write replaces the whole
value stored under a name.
"""

__all__ = [
    "BlobStore",
    "StoreError",
    "MemoryBlobStore",
    "JsonFileBlobStore",
]


class StoreError(Exception):
    """Raised when a blob cannot be read from or written to its backend."""


class BlobStore(Protocol):
    def get(self, name: str) -> str | None: ...

    def put(self, name: str, payload: str) -> None: ...


class MemoryBlobStore:
    """Dict-backed store for tests and dry runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, name: str) -> str | None:
        return self._blobs.get(name)

    def put(self, name: str, payload: str) -> None:
        self._blobs[name] = payload

    def names(self) -> list[str]:
        return sorted(self._blobs)


class JsonFileBlobStore:
    """One ``<name>.json`` file per blob under ``directory``.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never see a half-written collection.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise StoreError(f"invalid blob name: {name!r}")
        return self.directory / f"{name}.json"

    def get(self, name: str) -> str | None:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"cannot read {path}: {e}") from e

    def put(self, name: str, payload: str) -> None:
        path = self._path(name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StoreError(f"cannot write {path}: {e}") from e
