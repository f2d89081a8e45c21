# recruitflow/routers/processes.py
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional

from recruitflow.services.content_service import ContentService, get_content_service
from recruitflow.services.entity_store import EntityStore, get_store
from recruitflow.services.process_machine import ProcessStateMachine
from recruitflow.services.process_setup import start_process
from recruitflow.services.stage_catalog import StageConfig, default_stage_configs

router = APIRouter()


class ProcessCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    candidate_id: str
    job_posting_id: str
    # defaults to the three standard stages when omitted
    stages: Optional[List[StageConfig]] = None


class StageResultRequest(BaseModel):
    passed: bool


def get_process_machine(store: EntityStore = Depends(get_store)) -> ProcessStateMachine:
    return ProcessStateMachine(store)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_interview_process(
    request: ProcessCreateRequest,
    store: EntityStore = Depends(get_store),
    content_service: ContentService = Depends(get_content_service),
    machine: ProcessStateMachine = Depends(get_process_machine),
):
    """
    Create an interview process for a candidate and job posting.

    Stages flagged with ``generateQuestions`` get their questions before the
    process is stored; if generation fails nothing is created.
    """
    configs = request.stages if request.stages is not None else default_stage_configs()
    process = await start_process(
        store, content_service, request.candidate_id, request.job_posting_id, configs, machine=machine
    )
    return process.to_record()


@router.get("")
async def list_interview_processes(
    candidate_id: Optional[str] = Query(None, alias="candidateId"),
    job_posting_id: Optional[str] = Query(None, alias="jobPostingId"),
    machine: ProcessStateMachine = Depends(get_process_machine),
):
    """List interview processes, optionally filtered by candidate or job posting"""
    return [p.to_record() for p in machine.list_processes(candidate_id, job_posting_id)]


@router.get("/{process_id}")
async def get_interview_process(process_id: str, machine: ProcessStateMachine = Depends(get_process_machine)):
    return machine.load_process(process_id).to_record()


@router.post("/{process_id}/stages/{stage_id}/result")
async def record_stage_result(
    process_id: str,
    stage_id: str,
    request: StageResultRequest,
    machine: ProcessStateMachine = Depends(get_process_machine),
):
    """
    Record a pass/fail result for the process's current stage.

    Re-sending the verdict a stage already holds is accepted and returns the
    process unchanged.
    """
    process = machine.load_process(process_id)
    return machine.apply_stage_result(process, stage_id, request.passed).to_record()


@router.post("/{process_id}/cancel")
async def cancel_interview_process(process_id: str, machine: ProcessStateMachine = Depends(get_process_machine)):
    process = machine.load_process(process_id)
    return machine.cancel_process(process).to_record()
