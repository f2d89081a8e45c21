# recruitflow/routers/interviews.py
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional

from recruitflow.models.common import APIResponse
from recruitflow.models.interview import Interview, Interviewer
from recruitflow.services.content_service import ContentService, get_content_service
from recruitflow.services.entity_store import EntityStore, get_store
from recruitflow.services.interview_session import InterviewSessionController, derive_phase

router = APIRouter()


class InterviewOpenRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    process_id: str
    interviewer: Interviewer
    scheduled_date: Optional[datetime] = None


class AnswersRequest(BaseModel):
    answers: List[str]


class VerdictRequest(BaseModel):
    passed: bool


def get_session_controller(
    store: EntityStore = Depends(get_store),
    content_service: ContentService = Depends(get_content_service),
) -> InterviewSessionController:
    return InterviewSessionController(store, content_service)


def interview_response(interview: Interview) -> dict:
    """Interview record plus the phase it is in"""
    return {**interview.to_record(), "phase": derive_phase(interview).value}


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_interview(
    request: InterviewOpenRequest,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    """
    Open an interview for the process's current stage.

    Generates the stage's questions first if it has none. If an unfinished
    interview already exists for that stage it is returned instead.
    """
    interview = await controller.open_interview(request.process_id, request.interviewer, request.scheduled_date)
    return interview_response(interview)


@router.get("")
async def list_interviews(
    process_id: Optional[str] = Query(None, alias="processId"),
    controller: InterviewSessionController = Depends(get_session_controller),
):
    return [interview_response(i) for i in controller.list_interviews(process_id)]


@router.get("/{interview_id}")
async def get_interview(interview_id: str, controller: InterviewSessionController = Depends(get_session_controller)):
    return interview_response(controller.get_interview(interview_id))


@router.post("/{interview_id}/questions")
async def generate_questions(
    interview_id: str,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    """Generate questions for the interview's stage if it has none yet"""
    return interview_response(await controller.ensure_questions(interview_id))


@router.put("/{interview_id}/answers")
async def submit_answers(
    interview_id: str,
    request: AnswersRequest,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    return interview_response(controller.submit_answers(interview_id, request.answers))


@router.post("/{interview_id}/analysis")
async def analyze_interview(
    interview_id: str,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    """Score the saved answers; does not decide pass/fail"""
    return interview_response(await controller.request_analysis(interview_id))


@router.post("/{interview_id}/verdict")
async def record_verdict(
    interview_id: str,
    request: VerdictRequest,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    """Close the interview with a pass/fail verdict and advance its process"""
    return interview_response(controller.record_verdict(interview_id, request.passed))


@router.post("/{interview_id}/cancel")
async def cancel_interview(
    interview_id: str,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    return interview_response(controller.cancel_interview(interview_id))


@router.delete("/{interview_id}")
async def delete_interview(
    interview_id: str,
    controller: InterviewSessionController = Depends(get_session_controller),
):
    controller.delete_interview(interview_id)
    return APIResponse(success=True, message="Interview deleted", data={"id": interview_id})
