# recruitflow/routers/records.py - plain CRUD for job postings and candidates
from fastapi import APIRouter, Depends, status
from typing import Any, Dict, List, Type

from recruitflow.core.exceptions import NotFoundError
from recruitflow.models.common import APIResponse
from recruitflow.models.interview import RecordModel
from recruitflow.models.records import Candidate, JobPosting
from recruitflow.services.entity_store import CANDIDATES, JOB_POSTINGS, EntityStore, get_store


def build_record_router(kind: str, model: Type[RecordModel], label: str) -> APIRouter:
    """List/get/create/replace/delete endpoints for one record kind"""
    router = APIRouter()

    @router.get("", response_model=List[Dict[str, Any]])
    async def list_records(store: EntityStore = Depends(get_store)):
        return store.list(kind)

    @router.get("/{record_id}")
    async def get_record(record_id: str, store: EntityStore = Depends(get_store)):
        return store.get(kind, record_id)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_record(record: model, store: EntityStore = Depends(get_store)):
        return store.put(kind, record.to_record())

    @router.put("/{record_id}")
    async def replace_record(record_id: str, record: model, store: EntityStore = Depends(get_store)):
        store.get(kind, record_id)
        return store.put(kind, record.model_copy(update={"id": record_id}).to_record())

    @router.delete("/{record_id}")
    async def delete_record(record_id: str, store: EntityStore = Depends(get_store)):
        if not store.delete(kind, record_id):
            raise NotFoundError.for_record(kind, record_id)
        return APIResponse(success=True, message=f"{label} deleted", data={"id": record_id})

    return router


job_postings_router = build_record_router(JOB_POSTINGS, JobPosting, "Job posting")
candidates_router = build_record_router(CANDIDATES, Candidate, "Candidate")
