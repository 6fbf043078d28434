"""Persistence for record collections: blob stores and record repositories."""

from .blob_store import BlobStore, JsonFileBlobStore, MemoryBlobStore, StoreError
from .repository import RecordRepository, Repository

__all__ = [
    "BlobStore",
    "JsonFileBlobStore",
    "MemoryBlobStore",
    "StoreError",
    "RecordRepository",
    "Repository",
]
