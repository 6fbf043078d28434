from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Protocol

from ..models.records import DomainRecord, RecordKind, record_from_dict
from .blob_store import BlobStore

"""Record repositories: one JSON array of records per kind.

``load()`` returns the whole collection and ``replace()`` overwrites it; there
are no per-record operations.
"""

__all__ = [
    "Repository",
    "RecordRepository",
]

logger = logging.getLogger(__name__)


class Repository(Protocol):
    kind: RecordKind

    def load(self) -> list[DomainRecord]: ...

    def replace(self, records: Sequence[DomainRecord]) -> None: ...


class RecordRepository:
    """Repository of ``kind`` records stored as one blob named ``key``."""

    def __init__(self, store: BlobStore, kind: RecordKind, key: str) -> None:
        self.store = store
        self.kind = kind
        self.key = key

    def load(self) -> list[DomainRecord]:
        """Parse the stored array. A missing blob is an empty collection.

        A blob that is not a JSON array of objects is logged and treated as
        empty, so the next import rewrites it.
        """
        payload = self.store.get(self.key)
        if payload is None or payload.strip() == "":
            return []
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error(f"stored collection '{self.key}' is not valid JSON: {e}")
            return []
        if not isinstance(data, list):
            logger.error(f"stored collection '{self.key}' is not a JSON array")
            return []
        return [record_from_dict(self.kind, item) for item in data if isinstance(item, dict)]

    def replace(self, records: Sequence[DomainRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records], ensure_ascii=False)
        self.store.put(self.key, payload)
        logger.debug(f"stored {len(records)} records under '{self.key}'")
