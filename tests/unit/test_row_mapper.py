from __future__ import annotations

from dataclasses import replace

from maint_ingest.errors import UnparseableDateWarning
from maint_ingest.models.records import OCMRecord, PPMRecord, RecordKind, TrainingMachine, TrainingRecord
from maint_ingest.services.kinds import KIND_DEFINITIONS
from maint_ingest.services.row_mapper import (
    extract_dynamic_columns,
    is_trained,
    map_ocm_row,
    map_ppm_row,
    map_row,
    map_training_row,
)

PPM_ROW = {
    "Equipment": " Infusion Pump ",
    "Model": "M1",
    "Serial_Number": "SN1",
    "Manufacturer": "Acme",
    "Log_No": 12,
    "Department": "ICU",
    "Type": None,
    "Q1_Date": "2025-03-01",
    "Q1_Engineer": "A",
    "Q2_Date": 45000,
    "Q2_Engineer": "B",
    "Q3_Date": None,
    "Q3_Engineer": None,
}


def test_map_ppm_row():
    record = map_ppm_row(PPM_ROW)
    assert isinstance(record, PPMRecord)
    assert record.equipment == "Infusion Pump"
    assert record.log_no == "12"
    assert record.type == "PPM"
    assert record.q1.date == "2025-03-01T00:00:00.000Z"
    assert record.q1.engineer == "A"
    assert record.q2.date == "2023-03-15T00:00:00.000Z"
    assert record.q3.date == "" and record.q3.engineer == ""
    assert record.q4.date == "" and record.q4.engineer == ""


def test_every_mapping_gets_a_fresh_id():
    assert map_ppm_row(PPM_ROW).id != map_ppm_row(PPM_ROW).id


def test_bad_date_degrades_one_field_with_location():
    seen: list[UnparseableDateWarning] = []
    row = dict(PPM_ROW, Q2_Date="not-a-date")
    record = map_ppm_row(row, row_number=7, on_unparseable=seen.append)
    assert record.q2.date == ""
    assert record.q1.date != ""
    assert len(seen) == 1
    assert seen[0].row == 7 and seen[0].field == "Q2_Date"
    assert "row 7" in str(seen[0])


def test_map_ocm_row_reads_next_date_from_its_column():
    row = {
        "Equipment": "Ultrasound",
        "Serial_Number": "US1",
        "Last_Maintenance_Date": "2025-01-15",
        "Next_Maintenance_Date": "2025-07-01",
        "Engineer": "Michael",
    }
    record = map_ocm_row(row)
    assert isinstance(record, OCMRecord)
    assert record.type == "OCM"
    assert record.maintenance_date == "2025-01-15T00:00:00.000Z"
    assert record.next_maintenance_date == "2025-07-01T00:00:00.000Z"
    assert record.engineer == "Michael"


def test_map_ocm_row_derive_next_due():
    row = {"Equipment": "X", "Serial_Number": "1", "Last_Maintenance_Date": "2025-01-15"}
    assert map_ocm_row(row).next_maintenance_date == ""
    assert map_ocm_row(row, derive_next_due=True).next_maintenance_date == "2026-01-15T00:00:00.000Z"


def test_derived_next_due_follows_ocm_frequency(monkeypatch):
    ocm = KIND_DEFINITIONS[RecordKind.OCM]
    monkeypatch.setitem(KIND_DEFINITIONS, RecordKind.OCM, replace(ocm, frequency="quarterly"))
    row = {"Equipment": "X", "Serial_Number": "1", "Last_Maintenance_Date": "2025-01-15"}
    assert map_ocm_row(row, derive_next_due=True).next_maintenance_date == "2025-04-15T00:00:00.000Z"


def test_extract_dynamic_columns_keeps_row_order_and_lowercases():
    row = {"Name": "W", "Employee_ID": "1", "Sonar": "Yes", "Department": "D", "FMX": "No", "Trainer": "T"}
    assert extract_dynamic_columns(row) == [("sonar", "Yes"), ("fmx", "No")]


def test_extract_dynamic_columns_skips_empty_cells():
    row = {"Name": "W", "sonar": "Yes", "fmx": None, "max": ""}
    assert extract_dynamic_columns(row) == [("sonar", "Yes"), ("max", "")]


def test_is_trained():
    assert is_trained("Yes")
    assert is_trained(" yes ")
    assert is_trained("TRUE")
    assert is_trained(True)
    for value in ["No", "", None, 1, "y", False]:
        assert not is_trained(value)


def test_map_training_row():
    row = {
        "Name": "Waleed",
        "Employee_ID": 7678,
        "Department": "LDR",
        "Trainer": "Marline",
        "sonar": "Yes",
        "fmx": "no",
        "box20": None,
    }
    record = map_training_row(row)
    assert isinstance(record, TrainingRecord)
    assert record.employee_id == "7678"
    assert record.machines == (
        TrainingMachine("sonar", True),
        TrainingMachine("fmx", False),
    )
    assert "box20" not in [m.name for m in record.machines]
    assert record.is_trained_on("sonar")
    assert not record.is_trained_on("fmx")


def test_map_row_dispatches_by_kind():
    assert isinstance(map_row(RecordKind.PPM, PPM_ROW), PPMRecord)
    assert isinstance(map_row(RecordKind.OCM, {}, derive_next_due=True), OCMRecord)
    assert isinstance(map_row(RecordKind.TRAINING, {"Name": "a"}), TrainingRecord)
