import json
from datetime import datetime, timezone

import pytest

from recruitflow.core.exceptions import NotFoundError
from recruitflow.services.entity_store import (
    CANDIDATES,
    INTERVIEW_PROCESSES,
    FirestoreEntityStore,
    JsonFileEntityStore,
)


def test_put_and_get(store):
    store.put(CANDIDATES, {"id": "c1", "name": "Ana"})
    assert store.get(CANDIDATES, "c1") == {"id": "c1", "name": "Ana"}


def test_put_replaces_by_id(store):
    store.put(CANDIDATES, {"id": "c1", "name": "Ana"})
    store.put(CANDIDATES, {"id": "c2", "name": "Ben"})
    store.put(CANDIDATES, {"id": "c1", "name": "Ana Lopez"})

    assert [r["name"] for r in store.list(CANDIDATES)] == ["Ana Lopez", "Ben"]


def test_missing_record(store):
    with pytest.raises(NotFoundError) as exc_info:
        store.get(INTERVIEW_PROCESSES, "nope")
    assert exc_info.value.entity == INTERVIEW_PROCESSES
    assert exc_info.value.entity_id == "nope"


def test_delete(store):
    store.put(CANDIDATES, {"id": "c1", "name": "Ana"})
    assert store.delete(CANDIDATES, "c1") is True
    assert store.delete(CANDIDATES, "c1") is False
    assert store.list(CANDIDATES) == []


def test_unknown_kind(store):
    with pytest.raises(ValueError):
        store.list("payroll")


def test_one_file_per_kind(tmp_path):
    store = JsonFileEntityStore(str(tmp_path))
    store.put(INTERVIEW_PROCESSES, {"id": "p1", "stages": []})

    path = tmp_path / "interview-processes.json"
    assert json.loads(path.read_text()) == [{"id": "p1", "stages": []}]
    assert [p.name for p in tmp_path.iterdir()] == ["interview-processes.json"]


def test_records_survive_a_new_store(tmp_path):
    JsonFileEntityStore(str(tmp_path)).put(CANDIDATES, {"id": "c1", "name": "Ana"})
    assert JsonFileEntityStore(str(tmp_path)).get(CANDIDATES, "c1")["name"] == "Ana"


class FakeSnapshot:
    def __init__(self, data):
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return self._data


class FakeDocument:
    def __init__(self, docs, doc_id):
        self.docs = docs
        self.doc_id = doc_id

    def get(self):
        return FakeSnapshot(self.docs.get(self.doc_id))

    def set(self, data):
        self.docs[self.doc_id] = data

    def delete(self):
        del self.docs[self.doc_id]


class FakeCollection:
    def __init__(self):
        self.docs = {}

    def document(self, doc_id):
        return FakeDocument(self.docs, doc_id)

    def stream(self):
        return [FakeSnapshot(data) for data in self.docs.values()]


class FakeFirestore:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


def test_firestore_store_round_trip():
    db = FakeFirestore()
    store = FirestoreEntityStore(db)

    store.put(CANDIDATES, {"id": "c1", "name": "Ana"})

    assert db.collections[CANDIDATES].docs["c1"] == {"id": "c1", "name": "Ana"}
    assert store.get(CANDIDATES, "c1") == {"id": "c1", "name": "Ana"}
    assert store.list(CANDIDATES) == [{"id": "c1", "name": "Ana"}]
    assert store.delete(CANDIDATES, "c1") is True
    assert store.delete(CANDIDATES, "c1") is False
    with pytest.raises(NotFoundError):
        store.get(CANDIDATES, "c1")


def test_firestore_timestamps_become_iso_strings():
    db = FakeFirestore()
    created = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
    db.collection(INTERVIEW_PROCESSES).document("p1").set({"id": "p1", "createdAt": created, "stages": [{"id": "s1"}]})

    record = FirestoreEntityStore(db).get(INTERVIEW_PROCESSES, "p1")
    assert record["createdAt"] == "2024-03-01T09:30:00+00:00"
    assert record["stages"] == [{"id": "s1"}]
