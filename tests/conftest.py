# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from maint_ingest.logging.init import reset_logging
from maint_ingest.models.records import RecordKind
from maint_ingest.store.blob_store import MemoryBlobStore
from maint_ingest.store.repository import RecordRepository

PPM_SHEET_HEADERS = [
    "Equipment", "Model", "Serial_Number", "Manufacturer", "Log_No", "Department", "Type",
    "Q1_Date", "Q1_Engineer", "Q2_Date", "Q2_Engineer", "Q3_Date", "Q3_Engineer",
    "Q4_Date", "Q4_Engineer",
]

OCM_SHEET_HEADERS = [
    "Equipment", "Model", "Serial_Number", "Manufacturer", "Log_No", "Department", "Type",
    "Last_Maintenance_Date", "Next_Maintenance_Date", "Engineer",
]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """store:
  backend: json
  directory: ./data
storage_keys:
  PPM: ppmMachines
  OCM: ocmMachines
  TRAINING: employeeTraining
strict_duplicates: false
derive_next_due: false
keep_na_strings: [NA]
log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def _write_sheet(path: Path, rows: list[list[object]]) -> Path:
    df = pd.DataFrame(rows)
    if path.suffix == ".csv":
        df.to_csv(path, header=False, index=False)
    else:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return path


@pytest.fixture()
def make_sheet(tmp_path: Path) -> Callable[..., Path]:
    """Write ``rows`` (header row first) to ``name`` under tmp_path (.xlsx or .csv)."""
    def _make(name: str, rows: list[list[object]]) -> Path:
        return _write_sheet(tmp_path / name, rows)
    return _make


@pytest.fixture()
def ppm_row() -> Callable[..., list[object]]:
    def _row(equipment: str = "Infusion Pump", serial: str = "SN1", **overrides: object) -> list[object]:
        values = {
            "Equipment": equipment, "Model": "M1", "Serial_Number": serial, "Manufacturer": "Acme",
            "Log_No": "LG1", "Department": "ICU", "Type": "PPM",
            "Q1_Date": "2025-03-01", "Q1_Engineer": "A",
            "Q2_Date": "2025-06-01", "Q2_Engineer": "B",
            "Q3_Date": "", "Q3_Engineer": "",
            "Q4_Date": "", "Q4_Engineer": "",
        }
        values.update(overrides)
        return [values[h] for h in PPM_SHEET_HEADERS]
    return _row


@pytest.fixture()
def memory_repository() -> Callable[[RecordKind], RecordRepository]:
    store = MemoryBlobStore()

    def _repo(kind: RecordKind) -> RecordRepository:
        return RecordRepository(store, kind, f"{kind.value}_records")
    return _repo


@pytest.fixture()
def ppm_headers() -> list[str]:
    return list(PPM_SHEET_HEADERS)


@pytest.fixture()
def ocm_headers() -> list[str]:
    return list(OCM_SHEET_HEADERS)
