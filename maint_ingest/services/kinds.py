from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..excel.headers import canonicalize_header
from ..models.records import RecordKind

"""Per-kind definitions shared by the import and export paths.

Both directions read the same header lists from here, so a template written
by the exporter always validates on re-import.
"""

__all__ = [
    "KindDefinition",
    "PPM_HEADERS",
    "OCM_HEADERS",
    "TRAINING_FIXED_HEADERS",
    "TRAINING_SAMPLE_MACHINES",
    "TRAINING_HEADERS",
    "DEFAULT_STORAGE_KEYS",
    "get_definition",
    "KIND_DEFINITIONS",
]

# Template (display) headers; the canonical form replaces spaces with "_".
PPM_HEADERS = [
    "Equipment", "Model", "Serial Number", "Manufacturer",
    "Log No", "Department", "Type", "Q1 Date", "Q1 Engineer",
    "Q2 Date", "Q2 Engineer", "Q3 Date", "Q3 Engineer",
    "Q4 Date", "Q4 Engineer",
]

OCM_HEADERS = [
    "Equipment", "Model", "Serial Number", "Manufacturer",
    "Log No", "Department", "Type", "Last Maintenance Date",
    "Next Maintenance Date", "Engineer",
]

TRAINING_FIXED_HEADERS = ["Name", "Employee ID", "Department", "Trainer"]
TRAINING_SAMPLE_MACHINES = ["sonar", "fmx", "max", "box20", "hex"]
TRAINING_HEADERS = TRAINING_FIXED_HEADERS + TRAINING_SAMPLE_MACHINES

DEFAULT_STORAGE_KEYS: dict[RecordKind, str] = {
    RecordKind.PPM: "ppmMachines",
    RecordKind.OCM: "ocmMachines",
    RecordKind.TRAINING: "employeeTraining",
}

PPM_SAMPLE_DATA: list[dict[str, Any]] = [
    {
        "Equipment": "Patient Monitor", "Model": "IntelliVue MX450", "Serial Number": "PM789012",
        "Manufacturer": "Philips", "Log No": "LG002", "Department": "Emergency",
        "Type": "PPM", "Q1 Date": "2025-02-20", "Q1 Engineer": "John Smith",
        "Q2 Date": "2025-05-20", "Q2 Engineer": "Emma Davis",
        "Q3 Date": "2025-08-20", "Q3 Engineer": "Michael Brown",
        "Q4 Date": "2025-11-20", "Q4 Engineer": "Sarah Wilson",
    },
]

OCM_SAMPLE_DATA: list[dict[str, Any]] = [
    {
        "Equipment": "Ultrasound", "Model": "Voluson E10", "Serial Number": "US456789",
        "Manufacturer": "GE Healthcare", "Log No": "LG003", "Department": "Radiology",
        "Type": "OCM", "Last Maintenance Date": "2025-01-15",
        "Next Maintenance Date": "2026-01-15", "Engineer": "Michael Brown",
    },
]

TRAINING_SAMPLE_DATA: list[dict[str, Any]] = [
    {
        "Name": "Waleed", "Employee ID": "7678", "Department": "LDR", "Trainer": "Marline",
        "sonar": "Yes", "fmx": "Yes", "max": "No", "box20": "Yes", "hex": "No",
    },
    {
        "Name": "Ahmed", "Employee ID": "1234", "Department": "ICU", "Trainer": "Sarah",
        "sonar": "No", "fmx": "Yes", "max": "Yes", "box20": "No", "hex": "Yes",
    },
]


@dataclass(frozen=True)
class KindDefinition:
    """Everything that differs between record kinds outside the row mapper."""
    kind: RecordKind
    label: str
    template_headers: tuple[str, ...]
    required_headers: tuple[str, ...]  # canonical, substring-matched on import
    sample_rows: tuple[dict[str, Any], ...]
    frequency: str | None  # maintenance cadence, None for training

    @property
    def token(self) -> str:
        return self.kind.value

    @property
    def default_storage_key(self) -> str:
        return DEFAULT_STORAGE_KEYS[self.kind]


def _canonical(headers: list[str]) -> tuple[str, ...]:
    return tuple(canonicalize_header(h) for h in headers)


KIND_DEFINITIONS: dict[RecordKind, KindDefinition] = {
    RecordKind.PPM: KindDefinition(
        kind=RecordKind.PPM,
        label="PPM",
        template_headers=tuple(PPM_HEADERS),
        required_headers=_canonical(PPM_HEADERS),
        sample_rows=tuple(PPM_SAMPLE_DATA),
        frequency="quarterly",
    ),
    RecordKind.OCM: KindDefinition(
        kind=RecordKind.OCM,
        label="OCM",
        template_headers=tuple(OCM_HEADERS),
        required_headers=_canonical(OCM_HEADERS),
        sample_rows=tuple(OCM_SAMPLE_DATA),
        frequency="yearly",
    ),
    RecordKind.TRAINING: KindDefinition(
        kind=RecordKind.TRAINING,
        label="Training",
        template_headers=tuple(TRAINING_HEADERS),
        required_headers=_canonical(TRAINING_FIXED_HEADERS),
        sample_rows=tuple(TRAINING_SAMPLE_DATA),
        frequency=None,
    ),
}


def get_definition(kind: RecordKind) -> KindDefinition:
    return KIND_DEFINITIONS[kind]
