from __future__ import annotations

from pathlib import Path

from ..config.loader import IngestConfig
from ..models.records import RecordKind
from .blob_store import BlobStore, JsonFileBlobStore, MemoryBlobStore, StoreError
from .repository import RecordRepository

"""Build the configured blob store and per-kind repositories."""

__all__ = [
    "open_store",
    "repository_for",
]


def open_store(config: IngestConfig) -> BlobStore:
    backend = config.store.backend
    if backend == "memory":
        return MemoryBlobStore()
    if backend == "json":
        return JsonFileBlobStore(Path(config.store.directory))
    if backend == "postgres":
        from .postgres import PostgresBlobStore, resolve_dsn

        return PostgresBlobStore(resolve_dsn(config.database), table=config.store.table)
    raise StoreError(f"unknown store backend: {backend!r}")


def repository_for(store: BlobStore, config: IngestConfig, kind: RecordKind) -> RecordRepository:
    return RecordRepository(store, kind, config.storage_key(kind))
