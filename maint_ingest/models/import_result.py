from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..errors import UnparseableDateWarning
from .records import DomainRecord, RecordKind

"""Import result model.

Aggregates what one pipeline run did: how many rows were mapped, how many of
them created new records versus replaced stored ones, the full reconciled
collection handed to the repository, and every non-fatal date diagnostic.
"""

__all__ = [
    "ImportResult",
]


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one successful import of one file into one record kind."""
    kind: RecordKind
    file_name: str
    mapped_rows: int  # rows turned into records
    created: int  # records appended with a fresh id
    updated: int  # records that replaced a stored one and kept its id
    records: list[DomainRecord]  # full reconciled collection as persisted
    imported: list[DomainRecord]  # the mapped batch, before reconciliation
    start_time: datetime
    end_time: datetime
    warnings: list[UnparseableDateWarning] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return len(self.records)

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
