from __future__ import annotations

import json
from pathlib import Path

import pytest

from maint_ingest.config.loader import IngestConfig
from maint_ingest.errors import DuplicateRecordsError, MissingColumnsError
from maint_ingest.logging.error_log import ErrorLogBuffer
from maint_ingest.models.records import PPMRecord, RecordKind
from maint_ingest.services.pipeline import import_file
from maint_ingest.store.blob_store import JsonFileBlobStore
from maint_ingest.store.repository import RecordRepository


@pytest.fixture()
def ppm_repo(temp_workdir: Path) -> RecordRepository:
    return RecordRepository(JsonFileBlobStore(temp_workdir / "data"), RecordKind.PPM, "ppmMachines")


def _import(path: Path, kind: RecordKind, repo, **cfg):
    return import_file(path, kind, repo, config=IngestConfig(**cfg), error_log=ErrorLogBuffer())


def test_ppm_import_into_empty_store(make_sheet, ppm_headers, ppm_row, ppm_repo):
    src = make_sheet("ppm.xlsx", [ppm_headers, ppm_row()])
    result = _import(src, RecordKind.PPM, ppm_repo)

    assert (result.created, result.updated, result.total_records) == (1, 0, 1)
    (record,) = ppm_repo.load()
    assert isinstance(record, PPMRecord)
    assert record.equipment == "Infusion Pump"
    assert record.q1.date == "2025-03-01T00:00:00.000Z"
    assert record.q1.engineer == "A"
    assert record.q2.date == "2025-06-01T00:00:00.000Z"
    assert record.q3.date == "" and record.q4.engineer == ""
    assert record.id


def test_reimport_is_idempotent(make_sheet, ppm_headers, ppm_row, ppm_repo):
    src = make_sheet("ppm.xlsx", [ppm_headers, ppm_row(), ppm_row("Monitor", "SN2")])
    _import(src, RecordKind.PPM, ppm_repo)
    first = ppm_repo.load()
    result = _import(src, RecordKind.PPM, ppm_repo)
    assert (result.created, result.updated) == (0, 2)
    assert ppm_repo.load() == first


def test_reimport_updates_fields_and_keeps_id(make_sheet, ppm_headers, ppm_row, ppm_repo):
    _import(make_sheet("a.xlsx", [ppm_headers, ppm_row()]), RecordKind.PPM, ppm_repo)
    (before,) = ppm_repo.load()
    _import(make_sheet("b.xlsx", [ppm_headers, ppm_row(Department="Theatre")]), RecordKind.PPM, ppm_repo)
    (after,) = ppm_repo.load()
    assert after.id == before.id
    assert after.department == "Theatre"


def test_same_key_twice_in_one_file_last_row_wins(make_sheet, ppm_headers, ppm_row, ppm_repo):
    src = make_sheet("dup.xlsx", [ppm_headers, ppm_row(Model="first"), ppm_row(Model="second")])
    result = _import(src, RecordKind.PPM, ppm_repo)
    assert result.mapped_rows == 2
    (record,) = ppm_repo.load()
    assert record.model == "second"


def test_strict_mode_rejects_repeated_keys(make_sheet, ppm_headers, ppm_row, ppm_repo):
    src = make_sheet("dup.xlsx", [ppm_headers, ppm_row(), ppm_row()])
    with pytest.raises(DuplicateRecordsError, match=r"Infusion Pump \(SN1\)"):
        _import(src, RecordKind.PPM, ppm_repo, strict_duplicates=True)
    assert ppm_repo.load() == []


def test_missing_manufacturer_writes_nothing(make_sheet, ppm_headers, ppm_row, ppm_repo, temp_workdir):
    headers = [h for h in ppm_headers if h != "Manufacturer"]
    row = ppm_row()
    del row[ppm_headers.index("Manufacturer")]
    with pytest.raises(MissingColumnsError) as ei:
        _import(make_sheet("ppm.xlsx", [headers, row]), RecordKind.PPM, ppm_repo)
    assert ei.value.missing == ["Manufacturer"]
    assert not (temp_workdir / "data" / "ppmMachines.json").exists()


def test_bad_date_cell_does_not_abort(make_sheet, ppm_headers, ppm_row, ppm_repo):
    src = make_sheet("ppm.xlsx", [ppm_headers, ppm_row(Q1_Date="31/31/2025")])
    result = _import(src, RecordKind.PPM, ppm_repo)
    assert result.has_warnings
    assert result.warnings[0].row == 2
    (record,) = ppm_repo.load()
    assert record.q1.date == ""
    assert record.q2.date == "2025-06-01T00:00:00.000Z"


def test_training_dynamic_machines(temp_workdir: Path, make_sheet):
    repo = RecordRepository(JsonFileBlobStore(temp_workdir / "data"), RecordKind.TRAINING, "employeeTraining")
    src = make_sheet(
        "training.xlsx",
        [
            ["Name", "Employee ID", "Department", "Trainer", "Sonar", "FMX"],
            ["Waleed", "7678", "LDR", "Marline", "Yes", "no"],
        ],
    )
    _import(src, RecordKind.TRAINING, repo)
    stored = json.loads((temp_workdir / "data" / "employeeTraining.json").read_text(encoding="utf-8"))
    assert stored[0]["employeeId"] == "7678"
    assert stored[0]["machines"] == [
        {"name": "sonar", "trained": True},
        {"name": "fmx", "trained": False},
    ]


def test_ocm_csv_import(temp_workdir: Path, make_sheet, ocm_headers):
    repo = RecordRepository(JsonFileBlobStore(temp_workdir / "data"), RecordKind.OCM, "ocmMachines")
    src = make_sheet(
        "ocm.csv",
        [ocm_headers, ["Ultrasound", "E10", "US1", "GE", "LG3", "Radiology", "OCM", "1/15/2025", "", "Michael"]],
    )
    _import(src, RecordKind.OCM, repo, derive_next_due=True)
    (record,) = repo.load()
    assert record.maintenance_date == "2025-01-15T00:00:00.000Z"
    assert record.next_maintenance_date == "2026-01-15T00:00:00.000Z"
    assert record.engineer == "Michael"
