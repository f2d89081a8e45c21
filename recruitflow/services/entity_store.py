# recruitflow/services/entity_store.py - record persistence behind a load/save-by-id contract

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol

from recruitflow.core.config import get_settings
from recruitflow.core.exceptions import NotFoundError
from recruitflow.utils.utils import clean_record

logger = logging.getLogger(__name__)

JOB_POSTINGS = "job_postings"
CANDIDATES = "candidates"
INTERVIEWS = "interviews"
INTERVIEW_PROCESSES = "interview_processes"

KINDS = (JOB_POSTINGS, CANDIDATES, INTERVIEWS, INTERVIEW_PROCESSES)


class EntityStore(Protocol):
    """Records are JSON-serializable dicts; `id` is unique within its kind"""

    def get(self, kind: str, record_id: str) -> dict:
        ...

    def list(self, kind: str) -> List[dict]:
        ...

    def put(self, kind: str, record: dict) -> dict:
        ...

    def delete(self, kind: str, record_id: str) -> bool:
        ...


def _check_kind(kind: str):
    if kind not in KINDS:
        raise ValueError(f"Unknown record kind: {kind}")


class JsonFileEntityStore:
    """One JSON array file per kind, e.g. data/interview-processes.json"""

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, kind: str) -> Path:
        _check_kind(kind)
        return self.data_dir / f"{kind.replace('_', '-')}.json"

    def _read(self, kind: str) -> List[dict]:
        path = self._path(kind)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, kind: str, records: List[dict]):
        path = self._path(kind)
        # readers see either the old file or the new one, never a partial write
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, kind: str, record_id: str) -> dict:
        for record in self._read(kind):
            if record.get("id") == record_id:
                return record
        raise NotFoundError.for_record(kind, record_id)

    def list(self, kind: str) -> List[dict]:
        return self._read(kind)

    def put(self, kind: str, record: dict) -> dict:
        records = self._read(kind)
        for idx, existing in enumerate(records):
            if existing.get("id") == record["id"]:
                records[idx] = record
                break
        else:
            records.append(record)
        self._write(kind, records)
        return record

    def delete(self, kind: str, record_id: str) -> bool:
        records = self._read(kind)
        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False
        self._write(kind, remaining)
        return True


class FirestoreEntityStore:
    """One Firestore collection per kind, document id == record id"""

    def __init__(self, db):
        self.db = db

    def get(self, kind: str, record_id: str) -> dict:
        _check_kind(kind)
        doc = self.db.collection(kind).document(record_id).get()
        if not doc.exists:
            raise NotFoundError.for_record(kind, record_id)
        return clean_record(doc.to_dict())

    def list(self, kind: str) -> List[dict]:
        _check_kind(kind)
        return [clean_record(doc.to_dict()) for doc in self.db.collection(kind).stream()]

    def put(self, kind: str, record: dict) -> dict:
        _check_kind(kind)
        self.db.collection(kind).document(record["id"]).set(record)
        return record

    def delete(self, kind: str, record_id: str) -> bool:
        _check_kind(kind)
        doc_ref = self.db.collection(kind).document(record_id)
        if not doc_ref.get().exists:
            return False
        doc_ref.delete()
        return True


# Global store instance
_store: Optional[EntityStore] = None


def get_store() -> EntityStore:
    """Get the configured entity store (singleton pattern)"""
    global _store
    if _store is None:
        settings = get_settings()
        if settings.STORE_BACKEND == "firestore":
            from recruitflow.core.firebase import get_firestore_client
            _store = FirestoreEntityStore(get_firestore_client())
        elif settings.STORE_BACKEND == "json":
            _store = JsonFileEntityStore(settings.DATA_DIR)
        else:
            raise ValueError(f"Unsupported STORE_BACKEND: {settings.STORE_BACKEND}")
        logger.info("Entity store backend: %s", settings.STORE_BACKEND)
    return _store
