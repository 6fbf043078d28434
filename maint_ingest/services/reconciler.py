from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import DuplicateRecordsError
from ..models.records import DomainRecord
from ..store.repository import Repository

"""Reconciliation of an imported batch with the stored collection.

Records are "the same" when their composite natural key matches:
(equipment, serial number) for machines, (name, employee id) for training.

The default merge never fails: a matching stored record is replaced in place
by the imported one, which takes over the stored ``id``; anything else is
appended with its fresh ``id``. The accumulator is updated row by row, so two
rows with the same key in one batch resolve to the later row.

Strict mode instead rejects the whole batch when any key repeats inside the
batch or collides with a stored record.
"""

__all__ = [
    "MergeOutcome",
    "merge_records",
    "find_duplicates",
    "reconcile",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeOutcome:
    records: list[DomainRecord]  # full replacement collection
    created: int
    updated: int


def merge_records(existing: Sequence[DomainRecord], incoming: Sequence[DomainRecord]) -> MergeOutcome:
    result: list[DomainRecord] = list(existing)
    created = 0
    updated = 0
    for record in incoming:
        key = record.natural_key
        index = next((i for i, current in enumerate(result) if current.natural_key == key), -1)
        if index >= 0:
            result[index] = dataclasses.replace(record, id=result[index].id)
            updated += 1
        else:
            result.append(record)
            created += 1
    return MergeOutcome(records=result, created=created, updated=updated)


def _describe(record: DomainRecord) -> str:
    first, second = record.natural_key
    return f"{first} ({second})"


def find_duplicates(existing: Sequence[DomainRecord], incoming: Sequence[DomainRecord]) -> list[str]:
    """Describe every key repeated inside ``incoming`` or already present in ``existing``."""
    seen: set[tuple[str, str]] = set()
    duplicates: dict[tuple[str, str], str] = {}
    for record in incoming:
        key = record.natural_key
        if key in seen:
            duplicates.setdefault(key, _describe(record))
        else:
            seen.add(key)
    for record in existing:
        if record.natural_key in seen:
            duplicates.setdefault(record.natural_key, _describe(record))
    return list(duplicates.values())


def reconcile(
    repository: Repository,
    incoming: Sequence[DomainRecord],
    *,
    strict: bool = False,
    persist: bool = True,
) -> MergeOutcome:
    """Load the stored collection, merge ``incoming`` and write the result back.

    The write is a single full-collection replace and happens only after the
    merge succeeded.

    Raises:
        DuplicateRecordsError: strict mode and at least one key collides
    """
    existing = repository.load()
    if strict:
        duplicates = find_duplicates(existing, incoming)
        if duplicates:
            raise DuplicateRecordsError(duplicates)
    outcome = merge_records(existing, incoming)
    logger.debug(
        f"reconciled {len(incoming)} records: created={outcome.created} "
        f"updated={outcome.updated} total={len(outcome.records)}"
    )
    if persist:
        repository.replace(outcome.records)
    return outcome
