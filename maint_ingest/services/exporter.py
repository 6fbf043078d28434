from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from ..errors import EmptyExportError
from ..excel.writer import write_workbook
from ..models.records import DomainRecord, OCMRecord, PPMRecord, RecordKind, TrainingRecord
from .kinds import TRAINING_FIXED_HEADERS, get_definition

"""Template generation and export: the inverse of the import path.

- blank template: header row only, ``{kind}_template_blank.xlsx``
- sample template: header row plus the kind's illustrative rows,
  ``{kind}_template.xlsx`` (or ``{Kind}_Sample_Data.xlsx``)
- export: records flattened under the template headers (so the file
  re-imports cleanly) or pre-flattened view rows, ``{base}_{YYYY-MM-DD}.xlsx``

Nothing here touches the filesystem until ``ExportFile.write_to``.
"""

__all__ = [
    "ExportFile",
    "blank_template",
    "sample_template",
    "flatten_record",
    "export_headers",
    "export_records",
    "export_rows",
    "format_ppm_for_view",
    "format_ocm_for_view",
    "format_training_for_export",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportFile:
    file_name: str
    content: bytes
    rows: int

    def write_to(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.file_name
        path.write_bytes(self.content)
        logger.info(f"wrote {path} ({self.rows} rows)")
        return path


def blank_template(kind: RecordKind) -> ExportFile:
    definition = get_definition(kind)
    content = write_workbook([], definition.template_headers, sheet_name=definition.token.upper())
    return ExportFile(file_name=f"{definition.token}_template_blank.xlsx", content=content, rows=0)


def sample_template(kind: RecordKind, *, sample_data_name: bool = False) -> ExportFile:
    """Template with example rows that show a human the expected shape."""
    definition = get_definition(kind)
    rows = [dict(r) for r in definition.sample_rows]
    content = write_workbook(rows, definition.template_headers, sheet_name=definition.token.upper())
    if sample_data_name:
        file_name = f"{definition.label}_Sample_Data.xlsx"
    else:
        file_name = f"{definition.token}_template.xlsx"
    return ExportFile(file_name=file_name, content=content, rows=len(rows))


def _flatten_ppm(record: PPMRecord) -> dict[str, Any]:
    row: dict[str, Any] = {
        "Equipment": record.equipment,
        "Model": record.model,
        "Serial Number": record.serial_number,
        "Manufacturer": record.manufacturer,
        "Log No": record.log_no,
        "Department": record.department,
        "Type": record.type,
    }
    for number, slot in enumerate(record.quarters, start=1):
        row[f"Q{number} Date"] = slot.date
        row[f"Q{number} Engineer"] = slot.engineer
    return row


def _flatten_ocm(record: OCMRecord) -> dict[str, Any]:
    return {
        "Equipment": record.equipment,
        "Model": record.model,
        "Serial Number": record.serial_number,
        "Manufacturer": record.manufacturer,
        "Log No": record.log_no,
        "Department": record.department,
        "Type": record.type,
        "Last Maintenance Date": record.maintenance_date,
        "Next Maintenance Date": record.next_maintenance_date,
        "Engineer": record.engineer,
    }


def _flatten_training(record: TrainingRecord) -> dict[str, Any]:
    row: dict[str, Any] = {
        "Name": record.name,
        "Employee ID": record.employee_id,
        "Department": record.department,
        "Trainer": record.trainer,
    }
    for machine in record.machines:
        row[machine.name] = "Yes" if machine.trained else "No"
    return row


def flatten_record(record: DomainRecord) -> dict[str, Any]:
    """One export row keyed by template headers; ``id`` is not exported."""
    if isinstance(record, PPMRecord):
        return _flatten_ppm(record)
    if isinstance(record, OCMRecord):
        return _flatten_ocm(record)
    return _flatten_training(record)


def export_headers(kind: RecordKind, records: Sequence[DomainRecord]) -> list[str]:
    """Header row for exporting ``records``.

    Machines come from the records themselves, in first-seen order, since
    training columns are not fixed.
    """
    if kind is not RecordKind.TRAINING:
        return list(get_definition(kind).template_headers)
    headers = list(TRAINING_FIXED_HEADERS)
    for record in records:
        if not isinstance(record, TrainingRecord):
            continue
        for machine in record.machines:
            if machine.name not in headers:
                headers.append(machine.name)
    return headers


def _dated_name(base_name: str, today: date | None) -> str:
    stamp = (today or date.today()).isoformat()
    return f"{base_name}_{stamp}.xlsx"


def export_records(
    records: Sequence[DomainRecord],
    base_name: str,
    *,
    today: date | None = None,
) -> ExportFile:
    """Export typed records under the template headers.

    Raises:
        EmptyExportError: ``records`` is empty; no file is produced
    """
    if not records:
        raise EmptyExportError("data")
    kind = records[0].kind
    headers = export_headers(kind, records)
    rows = [flatten_record(r) for r in records]
    content = write_workbook(rows, headers, sheet_name="Data")
    return ExportFile(file_name=_dated_name(base_name, today), content=content, rows=len(rows))


def export_rows(
    rows: Sequence[dict[str, Any]],
    base_name: str,
    *,
    headers: Sequence[str] | None = None,
    today: date | None = None,
) -> ExportFile:
    """Export pre-flattened rows (e.g. a dashboard view).

    Raises:
        EmptyExportError: ``rows`` is empty; no file is produced
    """
    if not rows:
        raise EmptyExportError("data")
    content = write_workbook(rows, headers, sheet_name="Data")
    return ExportFile(file_name=_dated_name(base_name, today), content=content, rows=len(rows))


def format_ppm_for_view(machines: Sequence[PPMRecord]) -> list[dict[str, Any]]:
    """Dashboard PPM view: unscheduled quarters read ``Not scheduled``."""
    rows = []
    for m in machines:
        row: dict[str, Any] = {
            "Equipment": m.equipment,
            "Department": m.department,
            "Model": m.model,
            "SerialNumber": m.serial_number,
        }
        for number, slot in enumerate(m.quarters, start=1):
            row[f"Q{number}Date"] = slot.date or "Not scheduled"
            row[f"Q{number}Engineer"] = slot.engineer
        row["Status"] = "Maintained" if m.q1.date else "Pending"
        rows.append(row)
    return rows


def format_ocm_for_view(machines: Sequence[OCMRecord]) -> list[dict[str, Any]]:
    return [
        {
            "Equipment": m.equipment,
            "Department": m.department,
            "Model": m.model,
            "SerialNumber": m.serial_number,
            "LastMaintenance": m.maintenance_date or "Not Done",
            "NextDueDate": m.next_maintenance_date or "Not Scheduled",
            "Status": "Maintained" if m.maintenance_date else "Pending",
        }
        for m in machines
    ]


def format_training_for_export(employees: Sequence[TrainingRecord]) -> list[dict[str, Any]]:
    return [_flatten_training(e) for e in employees]
