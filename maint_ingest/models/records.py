from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

"""Domain records produced by row mapping and persisted by the repository.

Three record kinds share one lifecycle: created by the row mapper with a
fresh ``id``, merged by the reconciler (which carries a stored ``id`` over to
the re-imported record), and written back as a whole collection.

Serialized field names are camelCase so that stored collections stay
compatible with the dashboard that reads them.
"""

__all__ = [
    "RecordKind",
    "MaintenanceSlot",
    "PPMRecord",
    "OCMRecord",
    "TrainingMachine",
    "TrainingRecord",
    "DomainRecord",
    "new_record_id",
    "record_from_dict",
]


class RecordKind(Enum):
    """Record kinds handled by the pipeline.

    The value is the lower-case token used in template file names.
    """
    PPM = "ppm"
    OCM = "ocm"
    TRAINING = "training"

    @classmethod
    def parse(cls, text: str) -> RecordKind:
        """Case-insensitive lookup by name or value (``PPM``, ``ppm``, ``Training``)."""
        token = text.strip().lower()
        for kind in cls:
            if kind.value == token or kind.name.lower() == token:
                return kind
        raise ValueError(f"unknown record kind: {text!r}")


def new_record_id() -> str:
    return str(uuid.uuid4())


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class MaintenanceSlot:
    """One maintenance date (ISO timestamp or ``""``) and its engineer."""
    date: str = ""
    engineer: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"date": self.date, "engineer": self.engineer}

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> MaintenanceSlot:
        data = data or {}
        return MaintenanceSlot(date=_text(data.get("date")), engineer=_text(data.get("engineer")))


@dataclass(frozen=True)
class PPMRecord:
    """Planned preventive maintenance machine, serviced once per quarter."""
    id: str
    equipment: str = ""
    model: str = ""
    serial_number: str = ""
    manufacturer: str = ""
    log_no: str = ""
    department: str = ""
    type: str = "PPM"
    q1: MaintenanceSlot = field(default_factory=MaintenanceSlot)
    q2: MaintenanceSlot = field(default_factory=MaintenanceSlot)
    q3: MaintenanceSlot = field(default_factory=MaintenanceSlot)
    q4: MaintenanceSlot = field(default_factory=MaintenanceSlot)

    kind = RecordKind.PPM

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.equipment, self.serial_number)

    @property
    def quarters(self) -> tuple[MaintenanceSlot, MaintenanceSlot, MaintenanceSlot, MaintenanceSlot]:
        return (self.q1, self.q2, self.q3, self.q4)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "equipment": self.equipment,
            "model": self.model,
            "serialNumber": self.serial_number,
            "manufacturer": self.manufacturer,
            "logNo": self.log_no,
            "department": self.department,
            "type": self.type,
            "q1": self.q1.to_dict(),
            "q2": self.q2.to_dict(),
            "q3": self.q3.to_dict(),
            "q4": self.q4.to_dict(),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> PPMRecord:
        return PPMRecord(
            id=_text(data.get("id")) or new_record_id(),
            equipment=_text(data.get("equipment")),
            model=_text(data.get("model")),
            serial_number=_text(data.get("serialNumber")),
            manufacturer=_text(data.get("manufacturer")),
            log_no=_text(data.get("logNo")),
            department=_text(data.get("department")),
            type=_text(data.get("type")) or "PPM",
            q1=MaintenanceSlot.from_dict(data.get("q1")),
            q2=MaintenanceSlot.from_dict(data.get("q2")),
            q3=MaintenanceSlot.from_dict(data.get("q3")),
            q4=MaintenanceSlot.from_dict(data.get("q4")),
        )


@dataclass(frozen=True)
class OCMRecord:
    """On-condition maintenance machine, serviced yearly."""
    id: str
    equipment: str = ""
    model: str = ""
    serial_number: str = ""
    manufacturer: str = ""
    log_no: str = ""
    department: str = ""
    type: str = "OCM"
    maintenance_date: str = ""
    engineer: str = ""
    next_maintenance_date: str = ""

    kind = RecordKind.OCM

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.equipment, self.serial_number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "equipment": self.equipment,
            "model": self.model,
            "serialNumber": self.serial_number,
            "manufacturer": self.manufacturer,
            "logNo": self.log_no,
            "department": self.department,
            "type": self.type,
            "maintenanceDate": self.maintenance_date,
            "engineer": self.engineer,
            "nextMaintenanceDate": self.next_maintenance_date,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> OCMRecord:
        return OCMRecord(
            id=_text(data.get("id")) or new_record_id(),
            equipment=_text(data.get("equipment")),
            model=_text(data.get("model")),
            serial_number=_text(data.get("serialNumber")),
            manufacturer=_text(data.get("manufacturer")),
            log_no=_text(data.get("logNo")),
            department=_text(data.get("department")),
            type=_text(data.get("type")) or "OCM",
            maintenance_date=_text(data.get("maintenanceDate")),
            engineer=_text(data.get("engineer")),
            next_maintenance_date=_text(data.get("nextMaintenanceDate")),
        )


@dataclass(frozen=True)
class TrainingMachine:
    name: str
    trained: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "trained": self.trained}


@dataclass(frozen=True)
class TrainingRecord:
    """An employee and the machines they have (or have not) been trained on.

    The machine list is whatever extra columns the imported sheet carried.
    """
    id: str
    name: str = ""
    employee_id: str = ""
    department: str = ""
    trainer: str = ""
    machines: tuple[TrainingMachine, ...] = ()

    kind = RecordKind.TRAINING

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.name, self.employee_id)

    def is_trained_on(self, machine: str) -> bool:
        return any(m.name == machine and m.trained for m in self.machines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "employeeId": self.employee_id,
            "department": self.department,
            "trainer": self.trainer,
            "machines": [m.to_dict() for m in self.machines],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> TrainingRecord:
        machines = tuple(
            TrainingMachine(name=_text(m.get("name")), trained=bool(m.get("trained")))
            for m in data.get("machines") or []
            if isinstance(m, dict)
        )
        return TrainingRecord(
            id=_text(data.get("id")) or new_record_id(),
            name=_text(data.get("name")),
            employee_id=_text(data.get("employeeId")),
            department=_text(data.get("department")),
            trainer=_text(data.get("trainer")),
            machines=machines,
        )


DomainRecord = Union[PPMRecord, OCMRecord, TrainingRecord]

_RECORD_TYPES: dict[RecordKind, Any] = {
    RecordKind.PPM: PPMRecord,
    RecordKind.OCM: OCMRecord,
    RecordKind.TRAINING: TrainingRecord,
}


def record_from_dict(kind: RecordKind, data: dict[str, Any]) -> DomainRecord:
    """Rebuild a stored record of ``kind`` from its serialized dict."""
    return _RECORD_TYPES[kind].from_dict(data)
