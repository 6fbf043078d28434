from __future__ import annotations

import io
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from maint_ingest.errors import EmptyExportError
from maint_ingest.models.records import (
    MaintenanceSlot,
    OCMRecord,
    PPMRecord,
    RecordKind,
    TrainingMachine,
    TrainingRecord,
)
from maint_ingest.services.exporter import (
    blank_template,
    export_headers,
    export_records,
    export_rows,
    flatten_record,
    format_ocm_for_view,
    format_ppm_for_view,
    format_training_for_export,
    sample_template,
)
from maint_ingest.services.kinds import OCM_HEADERS, PPM_HEADERS, TRAINING_HEADERS


def _frame(content: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(content), engine="openpyxl", dtype=object)


@pytest.mark.parametrize(
    "kind,headers,name",
    [
        (RecordKind.PPM, PPM_HEADERS, "ppm_template_blank.xlsx"),
        (RecordKind.OCM, OCM_HEADERS, "ocm_template_blank.xlsx"),
        (RecordKind.TRAINING, TRAINING_HEADERS, "training_template_blank.xlsx"),
    ],
)
def test_blank_template(kind, headers, name):
    export = blank_template(kind)
    assert export.file_name == name
    assert export.rows == 0
    df = _frame(export.content)
    assert list(df.columns) == headers
    assert df.empty


def test_sample_template_names_and_rows():
    export = sample_template(RecordKind.TRAINING)
    assert export.file_name == "training_template.xlsx"
    df = _frame(export.content)
    assert list(df.columns) == TRAINING_HEADERS
    assert len(df) == 2
    assert sample_template(RecordKind.OCM, sample_data_name=True).file_name == "OCM_Sample_Data.xlsx"
    assert sample_template(RecordKind.TRAINING, sample_data_name=True).file_name == "Training_Sample_Data.xlsx"


def test_sample_template_sheet_is_named_after_kind():
    xls = pd.ExcelFile(io.BytesIO(sample_template(RecordKind.PPM).content), engine="openpyxl")
    assert xls.sheet_names == ["PPM"]


def test_flatten_ppm_has_no_id():
    record = PPMRecord(id="secret", equipment="Pump", serial_number="SN1", q2=MaintenanceSlot("2025-05-01T00:00:00.000Z", "B"))
    row = flatten_record(record)
    assert "id" not in row
    assert list(row) == PPM_HEADERS
    assert row["Q2 Date"] == "2025-05-01T00:00:00.000Z"
    assert row["Q2 Engineer"] == "B"


def test_flatten_ocm_uses_template_headers():
    row = flatten_record(OCMRecord(id="x", equipment="U", maintenance_date="d1", next_maintenance_date="d2"))
    assert set(row) == set(OCM_HEADERS)
    assert row["Last Maintenance Date"] == "d1"
    assert row["Next Maintenance Date"] == "d2"


def test_export_headers_training_union_of_machines():
    records = [
        TrainingRecord(id="1", name="a", machines=(TrainingMachine("sonar", True),)),
        TrainingRecord(id="2", name="b", machines=(TrainingMachine("hex", False), TrainingMachine("sonar", False))),
    ]
    assert export_headers(RecordKind.TRAINING, records) == ["Name", "Employee ID", "Department", "Trainer", "sonar", "hex"]
    assert export_headers(RecordKind.OCM, []) == OCM_HEADERS


def test_export_records_file_name_and_content():
    records = [TrainingRecord(id="1", name="Waleed", employee_id="7678", machines=(TrainingMachine("sonar", True),))]
    export = export_records(records, "training_export", today=date(2025, 3, 4))
    assert export.file_name == "training_export_2025-03-04.xlsx"
    df = _frame(export.content)
    assert df.loc[0, "Name"] == "Waleed"
    assert df.loc[0, "sonar"] == "Yes"


def test_export_empty_raises():
    with pytest.raises(EmptyExportError, match="No data to export"):
        export_records([], "ppm_export")
    with pytest.raises(EmptyExportError):
        export_rows([], "view")


def test_export_rows_and_write_to(tmp_path: Path):
    export = export_rows([{"a": 1}], "view", today=date(2025, 1, 2))
    path = export.write_to(tmp_path / "out")
    assert path == tmp_path / "out" / "view_2025-01-02.xlsx"
    assert path.read_bytes() == export.content


def test_format_ppm_for_view():
    rows = format_ppm_for_view([
        PPMRecord(id="1", equipment="Pump", q1=MaintenanceSlot("2025-01-01T00:00:00.000Z", "A")),
        PPMRecord(id="2", equipment="Mon"),
    ])
    assert rows[0]["Q1Date"] == "2025-01-01T00:00:00.000Z"
    assert rows[0]["Q2Date"] == "Not scheduled"
    assert rows[0]["Status"] == "Maintained"
    assert rows[1]["Status"] == "Pending"


def test_format_ocm_for_view():
    rows = format_ocm_for_view([OCMRecord(id="1", equipment="U")])
    assert rows[0]["LastMaintenance"] == "Not Done"
    assert rows[0]["NextDueDate"] == "Not Scheduled"
    assert rows[0]["Status"] == "Pending"


def test_format_training_for_export():
    rows = format_training_for_export([TrainingRecord(id="1", name="a", machines=(TrainingMachine("fmx", False),))])
    assert rows == [{"Name": "a", "Employee ID": "", "Department": "", "Trainer": "", "fmx": "No"}]
