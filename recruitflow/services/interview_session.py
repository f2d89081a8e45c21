# recruitflow/services/interview_session.py - question/answer/analysis/verdict cycle of one interview

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from recruitflow.core.config import get_settings
from recruitflow.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from recruitflow.models.interview import (
    Interview,
    InterviewAnalysis,
    InterviewPhase,
    InterviewProcess,
    Interviewer,
    InterviewStatus,
    ProcessStatus,
    utcnow,
)
from recruitflow.models.records import Candidate, JobPosting
from recruitflow.services.content_service import ContentService
from recruitflow.services.entity_store import CANDIDATES, INTERVIEWS, JOB_POSTINGS, EntityStore
from recruitflow.services.process_machine import ProcessStateMachine

logger = logging.getLogger(__name__)


def derive_phase(interview: Interview) -> InterviewPhase:
    if interview.is_terminal:
        return InterviewPhase.TERMINAL
    if not interview.stage.questions:
        return InterviewPhase.PENDING
    if not interview.answers:
        return InterviewPhase.READY_FOR_ANSWERS
    if interview.analysis is None:
        return InterviewPhase.NEEDS_ANALYSIS
    return InterviewPhase.AWAITING_VERDICT


class InterviewSessionController:
    """
    Drives a single interview session and feeds its verdict back into the
    owning process.

    The process's ``stages`` list is the source of truth. Every entry point
    reloads the interview together with its process and refreshes the
    interview's stage snapshot from it, and nothing here edits the snapshot
    directly. Writes happen only after external calls have returned, so a
    failed or abandoned content-service call leaves stored state untouched.
    """

    def __init__(
        self,
        store: EntityStore,
        content_service: ContentService,
        machine: Optional[ProcessStateMachine] = None,
        pass_threshold: Optional[float] = None,
    ):
        self.store = store
        self.content_service = content_service
        self.machine = machine or ProcessStateMachine(store)
        self.pass_threshold = pass_threshold if pass_threshold is not None else get_settings().PASS_THRESHOLD

    # ------------------------------------------------------------------ reads

    def list_interviews(self, process_id: Optional[str] = None) -> List[Interview]:
        interviews = [Interview.from_record(r) for r in self.store.list(INTERVIEWS)]
        if process_id:
            interviews = [i for i in interviews if i.process_id == process_id]
        return interviews

    def get_interview(self, interview_id: str) -> Interview:
        interview, _ = self._load(interview_id)
        return interview

    # ------------------------------------------------------------- lifecycle

    async def open_interview(
        self,
        process_id: str,
        interviewer: Interviewer,
        scheduled_date: Optional[datetime] = None,
    ) -> Interview:
        """
        Open a session for the process's current stage, generating its
        questions first when the stage has none. An unfinished session for
        the same stage is returned rather than duplicated.
        """
        process = self.machine.load_process(process_id)
        if process.status != ProcessStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Cannot open an interview: the process is {process.status.value}",
                entity="interview_process", entity_id=process.id,
            )

        stage = process.current
        for existing in self.list_interviews(process_id):
            if existing.stage.id == stage.id and not existing.is_terminal:
                logger.info("Reusing open interview %s for stage %s", existing.id, stage.id)
                return self._refresh(existing, process)

        if not stage.questions:
            process = await self._generate_questions(process, stage.id)
            stage = process.current

        now = utcnow()
        interview = Interview(
            candidate_id=process.candidate_id,
            job_posting_id=process.job_posting_id,
            process_id=process.id,
            stage=stage.model_copy(deep=True),
            status=InterviewStatus.SCHEDULED,
            scheduled_date=scheduled_date,
            interviewer=interviewer,
            created_at=now,
            updated_at=now,
        )
        self._save(interview)
        logger.info("Opened interview %s for process %s stage %s", interview.id, process.id, stage.id)
        return interview

    async def ensure_questions(self, interview_id: str) -> Interview:
        interview, process = self._load(interview_id)
        self._require_active(interview)
        if interview.stage.questions:
            return interview

        process = await self._generate_questions(process, interview.stage.id)
        interview = self._refresh(interview, process)
        interview.updated_at = utcnow()
        return self._save(interview)

    def submit_answers(self, interview_id: str, answers: Sequence[str]) -> Interview:
        interview, process = self._load(interview_id)
        self._require_active(interview)

        questions = interview.stage.questions
        if not questions:
            raise InvalidStateError(
                "Questions have not been generated for this stage yet",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )
        if interview.answers:
            raise InvalidStateError(
                "Answers were already saved for this interview",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )
        if len(answers) != len(questions):
            raise ValidationError(
                f"Expected {len(questions)} answers, got {len(answers)}; answer all questions before saving",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )
        blank = [idx + 1 for idx, answer in enumerate(answers) if not answer or not answer.strip()]
        if blank:
            raise ValidationError(
                f"Please answer all questions before saving (missing: {', '.join(map(str, blank))})",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )

        process = self.machine.start_stage(process, interview.stage.id)
        interview = self._refresh(interview, process)
        interview.answers = list(answers)
        interview.status = InterviewStatus.IN_PROGRESS
        interview.updated_at = utcnow()
        self._save(interview)
        logger.info("Saved %d answers for interview %s", len(answers), interview.id)
        return interview

    async def request_analysis(self, interview_id: str) -> Interview:
        """Score the saved answers and assess the stage; the verdict itself is left to the caller"""
        interview, process = self._load(interview_id)
        self._require_active(interview)
        if process.status != ProcessStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Cannot analyze answers: the process is {process.status.value}",
                entity="interview_process", entity_id=process.id, stage_id=interview.stage.id,
            )
        if not interview.answers:
            raise InvalidStateError(
                "Answers must be saved before they can be analyzed",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )

        questions = interview.stage.questions
        results = await self.content_service.analyze_all(questions, interview.answers)
        assessment = await self.content_service.stage_feedback(
            interview.stage.type, questions, interview.answers, results
        )
        interview.analysis = InterviewAnalysis(
            overall_score=assessment.overall_score,
            feedback=assessment.feedback,
            next_steps=assessment.next_steps,
            recommended_pass=assessment.overall_score >= self.pass_threshold,
            results=results,
        )
        interview.updated_at = utcnow()
        self._save(interview)
        logger.info("Analyzed interview %s: score=%.1f", interview.id, interview.analysis.overall_score)
        return interview

    def record_verdict(self, interview_id: str, passed: bool) -> Interview:
        """
        Apply the verdict to the process, then close the interview.

        The process write goes first and is idempotent, so if closing the
        interview fails the same call can simply be repeated.
        """
        interview, process = self._load(interview_id)
        self._require_active(interview)
        if not interview.answers:
            raise InvalidStateError(
                "Save answers before recording a verdict",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )

        process = self.machine.apply_stage_result(process, interview.stage.id, passed)
        interview = self._refresh(interview, process)
        interview.status = InterviewStatus.COMPLETED
        interview.updated_at = utcnow()
        self._save(interview)
        logger.info("Interview %s closed with passed=%s; process %s is %s",
                    interview.id, passed, process.id, process.status.value)
        return interview

    def cancel_interview(self, interview_id: str) -> Interview:
        interview, _ = self._load(interview_id)
        self._require_active(interview)
        interview.status = InterviewStatus.CANCELLED
        interview.updated_at = utcnow()
        self._save(interview)
        logger.info("Cancelled interview %s", interview.id)
        return interview

    def delete_interview(self, interview_id: str):
        """Remove the session record; the process and its verdicts are left as they are"""
        if not self.store.delete(INTERVIEWS, interview_id):
            raise NotFoundError.for_record(INTERVIEWS, interview_id)
        logger.info("Deleted interview %s", interview_id)

    # --------------------------------------------------------------- helpers

    async def _generate_questions(self, process: InterviewProcess, stage_id: str) -> InterviewProcess:
        job_posting = JobPosting.from_record(self.store.get(JOB_POSTINGS, process.job_posting_id))
        candidate = Candidate.from_record(self.store.get(CANDIDATES, process.candidate_id))
        stage = process.stages[process.stage_index(stage_id)]
        questions = await self.content_service.generate_questions(stage.type, job_posting, candidate)
        return self.machine.attach_questions(process, stage_id, questions)

    def _load(self, interview_id: str) -> Tuple[Interview, InterviewProcess]:
        interview = Interview.from_record(self.store.get(INTERVIEWS, interview_id))
        process = self.machine.load_process(interview.process_id)
        return self._refresh(interview, process), process

    @staticmethod
    def _refresh(interview: Interview, process: InterviewProcess) -> Interview:
        idx = process.stage_index(interview.stage.id)
        if idx is None:
            raise NotFoundError(
                f"Stage {interview.stage.id} of interview {interview.id} is not part of process {process.id}",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )
        return interview.model_copy(update={"stage": process.stages[idx].model_copy(deep=True)})

    @staticmethod
    def _require_active(interview: Interview):
        if interview.is_terminal:
            raise InvalidStateError(
                f"Interview is {interview.status.value}; no further changes are accepted",
                entity="interview", entity_id=interview.id, stage_id=interview.stage.id,
            )

    def _save(self, interview: Interview) -> Interview:
        self.store.put(INTERVIEWS, interview.to_record())
        return interview
