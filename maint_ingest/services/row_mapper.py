from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from ..errors import UnparseableDateWarning
from ..excel.dates import calculate_next_date, normalize_date
from ..models.records import (
    DomainRecord,
    MaintenanceSlot,
    OCMRecord,
    PPMRecord,
    RecordKind,
    TrainingMachine,
    TrainingRecord,
    new_record_id,
)
from ..models.row_data import CellValue, NormalizedRow
from .kinds import get_definition

"""Row mapping: one normalized row -> one typed record.

Every mapper is a pure function of the row that assigns a fresh ``id``;
identity is only carried over later by the reconciler. Missing text fields
become ``""`` and unreadable dates become ``""`` plus a diagnostic.
"""

__all__ = [
    "TRAINING_FIXED_COLUMNS",
    "TRUTHY_TRAINING_VALUES",
    "map_ppm_row",
    "map_ocm_row",
    "map_training_row",
    "map_row",
    "extract_dynamic_columns",
    "is_trained",
]

WarningSink = Callable[[UnparseableDateWarning], None]

TRAINING_FIXED_COLUMNS = ("Name", "Employee_ID", "Department", "Trainer")
TRUTHY_TRAINING_VALUES = frozenset({"yes", "true"})


def _text(value: CellValue) -> str:
    if value is None or value is False:
        return ""
    return str(value).strip()


def _date(
    row: NormalizedRow,
    column: str,
    row_number: int | None,
    on_unparseable: WarningSink | None,
) -> str:
    sink = None
    if on_unparseable is not None:
        def sink(warning: UnparseableDateWarning) -> None:
            on_unparseable(warning.with_location(column, row_number))
    return normalize_date(row.get(column), sink)


def _slot(row: NormalizedRow, quarter: int, row_number: int | None, sink: WarningSink | None) -> MaintenanceSlot:
    return MaintenanceSlot(
        date=_date(row, f"Q{quarter}_Date", row_number, sink),
        engineer=_text(row.get(f"Q{quarter}_Engineer")),
    )


def map_ppm_row(
    row: NormalizedRow,
    *,
    row_number: int | None = None,
    on_unparseable: WarningSink | None = None,
) -> PPMRecord:
    return PPMRecord(
        id=new_record_id(),
        equipment=_text(row.get("Equipment")),
        model=_text(row.get("Model")),
        serial_number=_text(row.get("Serial_Number")),
        manufacturer=_text(row.get("Manufacturer")),
        log_no=_text(row.get("Log_No")),
        department=_text(row.get("Department")),
        type=_text(row.get("Type")) or "PPM",
        q1=_slot(row, 1, row_number, on_unparseable),
        q2=_slot(row, 2, row_number, on_unparseable),
        q3=_slot(row, 3, row_number, on_unparseable),
        q4=_slot(row, 4, row_number, on_unparseable),
    )


def map_ocm_row(
    row: NormalizedRow,
    *,
    row_number: int | None = None,
    on_unparseable: WarningSink | None = None,
    derive_next_due: bool = False,
) -> OCMRecord:
    """Map an OCM row.

    The next maintenance date is read from its own column. With
    ``derive_next_due`` an empty next date is filled from the last date and
    the OCM maintenance frequency.
    """
    last = _date(row, "Last_Maintenance_Date", row_number, on_unparseable)
    next_due = _date(row, "Next_Maintenance_Date", row_number, on_unparseable)
    if derive_next_due and not next_due and last:
        frequency = get_definition(RecordKind.OCM).frequency or "yearly"
        next_due = calculate_next_date(last, frequency)
    return OCMRecord(
        id=new_record_id(),
        equipment=_text(row.get("Equipment")),
        model=_text(row.get("Model")),
        serial_number=_text(row.get("Serial_Number")),
        manufacturer=_text(row.get("Manufacturer")),
        log_no=_text(row.get("Log_No")),
        department=_text(row.get("Department")),
        type=_text(row.get("Type")) or "OCM",
        maintenance_date=last,
        engineer=_text(row.get("Engineer")),
        next_maintenance_date=next_due,
    )


def extract_dynamic_columns(
    row: NormalizedRow, fixed: Iterable[str] = TRAINING_FIXED_COLUMNS
) -> list[tuple[str, CellValue]]:
    """Columns of ``row`` outside the fixed employee fields, in row order.

    The set of trainable machines is whatever the sheet carries, so every
    such column is a machine. Names are lower-cased. An empty cell means the
    employee has no entry for that machine, so it yields no column.
    """
    fixed_lower = {f.lower() for f in fixed}
    return [
        (key.lower(), value)
        for key, value in row.items()
        if key.lower() not in fixed_lower and value is not None
    ]


def is_trained(value: CellValue) -> bool:
    """``Yes``/``true`` (any case) or boolean ``True``; everything else is untrained."""
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_TRAINING_VALUES
    return False


def map_training_row(
    row: NormalizedRow,
    *,
    row_number: int | None = None,
    on_unparseable: WarningSink | None = None,
) -> TrainingRecord:
    machines = tuple(
        TrainingMachine(name=name, trained=is_trained(value))
        for name, value in extract_dynamic_columns(row)
    )
    return TrainingRecord(
        id=new_record_id(),
        name=_text(row.get("Name")),
        employee_id=_text(row.get("Employee_ID")),
        department=_text(row.get("Department")),
        trainer=_text(row.get("Trainer")),
        machines=machines,
    )


_MAPPERS: dict[RecordKind, Callable[..., DomainRecord]] = {
    RecordKind.PPM: map_ppm_row,
    RecordKind.OCM: map_ocm_row,
    RecordKind.TRAINING: map_training_row,
}


def map_row(
    kind: RecordKind,
    row: NormalizedRow,
    *,
    row_number: int | None = None,
    on_unparseable: WarningSink | None = None,
    **options: Any,
) -> DomainRecord:
    """Dispatch to the mapper for ``kind``; ``options`` go to kinds that take them."""
    mapper = _MAPPERS[kind]
    if kind is RecordKind.OCM:
        return mapper(row, row_number=row_number, on_unparseable=on_unparseable, **options)
    return mapper(row, row_number=row_number, on_unparseable=on_unparseable)
