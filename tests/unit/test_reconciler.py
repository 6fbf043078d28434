from __future__ import annotations

import pytest

from maint_ingest.errors import DuplicateRecordsError
from maint_ingest.models.records import PPMRecord, RecordKind, TrainingRecord
from maint_ingest.services.reconciler import find_duplicates, merge_records, reconcile


def _ppm(id_: str, equipment: str, serial: str, model: str = "M") -> PPMRecord:
    return PPMRecord(id=id_, equipment=equipment, serial_number=serial, model=model)


def test_matched_record_keeps_stored_id_and_takes_new_fields():
    existing = [_ppm("old", "Pump", "SN1", model="v1")]
    outcome = merge_records(existing, [_ppm("new", "Pump", "SN1", model="v2")])
    assert outcome.created == 0 and outcome.updated == 1
    assert outcome.records == [_ppm("old", "Pump", "SN1", model="v2")]


def test_unmatched_record_is_appended():
    existing = [_ppm("a", "Pump", "SN1")]
    outcome = merge_records(existing, [_ppm("b", "Pump", "SN2")])
    assert [r.id for r in outcome.records] == ["a", "b"]
    assert outcome.created == 1


def test_key_needs_both_parts():
    existing = [_ppm("a", "Pump", "SN1")]
    outcome = merge_records(existing, [_ppm("b", "Monitor", "SN1")])
    assert len(outcome.records) == 2


def test_repeat_within_batch_last_write_wins():
    incoming = [_ppm("x", "Pump", "SN1", model="first"), _ppm("y", "Pump", "SN1", model="second")]
    outcome = merge_records([], incoming)
    assert len(outcome.records) == 1
    assert outcome.records[0].model == "second"
    assert outcome.records[0].id == "x"
    assert (outcome.created, outcome.updated) == (1, 1)


def test_training_key_is_name_and_employee_id():
    existing = [TrainingRecord(id="t1", name="Waleed", employee_id="7678", department="LDR")]
    outcome = merge_records(existing, [TrainingRecord(id="t2", name="Waleed", employee_id="7678", department="ICU")])
    assert outcome.records == [TrainingRecord(id="t1", name="Waleed", employee_id="7678", department="ICU")]


def test_find_duplicates():
    existing = [_ppm("a", "Pump", "SN1")]
    incoming = [_ppm("b", "Pump", "SN1"), _ppm("c", "Mon", "SN9"), _ppm("d", "Mon", "SN9")]
    assert sorted(find_duplicates(existing, incoming)) == ["Mon (SN9)", "Pump (SN1)"]
    assert find_duplicates([], [_ppm("a", "Pump", "SN1")]) == []


class _ListRepository:
    kind = RecordKind.PPM

    def __init__(self, records=None):
        self.records = list(records or [])
        self.replace_calls = 0

    def load(self):
        return list(self.records)

    def replace(self, records):
        self.replace_calls += 1
        self.records = list(records)


def test_reconcile_persists_full_collection():
    repo = _ListRepository([_ppm("a", "Pump", "SN1")])
    outcome = reconcile(repo, [_ppm("b", "Pump", "SN2")])
    assert repo.replace_calls == 1
    assert repo.records == outcome.records
    assert len(repo.records) == 2


def test_reconcile_strict_rejects_and_writes_nothing():
    repo = _ListRepository([_ppm("a", "Pump", "SN1")])
    with pytest.raises(DuplicateRecordsError) as ei:
        reconcile(repo, [_ppm("b", "Pump", "SN1")], strict=True)
    assert "Pump (SN1)" in str(ei.value)
    assert repo.replace_calls == 0


def test_reconcile_without_persist():
    repo = _ListRepository()
    outcome = reconcile(repo, [_ppm("a", "Pump", "SN1")], persist=False)
    assert outcome.created == 1
    assert repo.replace_calls == 0
