"""Domain models for the maintenance spreadsheet ingestion pipeline.

Row shapes (raw / normalized), the three record kinds and per-import results.
"""

from .import_result import ImportResult
from .records import (
    DomainRecord,
    MaintenanceSlot,
    OCMRecord,
    PPMRecord,
    RecordKind,
    TrainingMachine,
    TrainingRecord,
    new_record_id,
    record_from_dict,
)
from .row_data import CellValue, NormalizedRow, RawRow

__all__ = [
    # Rows
    "CellValue",
    "RawRow",
    "NormalizedRow",
    # Records
    "RecordKind",
    "DomainRecord",
    "MaintenanceSlot",
    "PPMRecord",
    "OCMRecord",
    "TrainingMachine",
    "TrainingRecord",
    "new_record_id",
    "record_from_dict",
    # Results
    "ImportResult",
]
