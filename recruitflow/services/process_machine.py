# recruitflow/services/process_machine.py - InterviewProcess lifecycle and stage sequencing

import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError as SchemaError

from recruitflow.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from recruitflow.models.interview import (
    InterviewProcess,
    InterviewQuestion,
    InterviewStage,
    ProcessStatus,
    StageCompleted,
    StageStatus,
    utcnow,
)
from recruitflow.services.entity_store import INTERVIEW_PROCESSES, EntityStore

logger = logging.getLogger(__name__)


class ProcessStateMachine:
    """
    Owns creation and stage advancement of interview processes.

    Every mutating call works on a deep copy of the process it is given and
    persists the copy in a single write; if the write fails the caller's
    object and the stored record are both left as they were. Calls for the
    same process must be serialized by the caller.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    # ------------------------------------------------------------------ reads

    def load_process(self, process_id: str) -> InterviewProcess:
        return InterviewProcess.from_record(self.store.get(INTERVIEW_PROCESSES, process_id))

    def list_processes(
        self,
        candidate_id: Optional[str] = None,
        job_posting_id: Optional[str] = None,
    ) -> List[InterviewProcess]:
        processes = [InterviewProcess.from_record(r) for r in self.store.list(INTERVIEW_PROCESSES)]
        if candidate_id:
            processes = [p for p in processes if p.candidate_id == candidate_id]
        if job_posting_id:
            processes = [p for p in processes if p.job_posting_id == job_posting_id]
        return processes

    def save(self, process: InterviewProcess) -> InterviewProcess:
        self.store.put(INTERVIEW_PROCESSES, process.to_record())
        return process

    # ------------------------------------------------------------- lifecycle

    def create_process(
        self,
        candidate_id: str,
        job_posting_id: str,
        stages: Sequence[InterviewStage],
    ) -> InterviewProcess:
        if not stages:
            raise ValidationError("An interview process needs at least one stage", entity="interview_process")
        if any(stage.status != StageStatus.PENDING for stage in stages):
            raise ValidationError("A new interview process must start with every stage pending",
                                  entity="interview_process")

        now = utcnow()
        try:
            process = InterviewProcess(
                candidate_id=candidate_id,
                job_posting_id=job_posting_id,
                stages=[stage.model_copy(deep=True) for stage in stages],
                current_stage=0,
                status=ProcessStatus.IN_PROGRESS,
                created_at=now,
                updated_at=now,
            )
        except SchemaError as e:
            raise ValidationError(f"Invalid stage configuration: {e}", entity="interview_process") from e

        self.save(process)
        logger.info("Created interview process %s for candidate %s with %d stages",
                    process.id, candidate_id, len(process.stages))
        return process

    def apply_stage_result(self, process: InterviewProcess, stage_id: str, passed: bool) -> InterviewProcess:
        """
        Record the verdict for the current stage and derive the next state.

        A failing verdict ends the process (also on the last stage); a passing
        verdict on the last stage completes it; otherwise the process moves
        to the next stage. Re-applying the verdict a stage already holds
        returns the process unchanged without writing.
        """
        idx = self._locate(process, stage_id)
        stage = process.stages[idx]

        outcome = stage.outcome
        if isinstance(outcome, StageCompleted):
            if outcome.passed == passed:
                logger.info("Stage %s of process %s already holds verdict passed=%s", stage_id, process.id, passed)
                return process
            raise InvalidStateError(
                f"Stage '{stage.name}' was already completed with passed={outcome.passed}",
                entity="interview_process", entity_id=process.id, stage_id=stage_id,
            )

        self._require_current(process, idx, "record a result for")

        updated = process.model_copy(deep=True)
        updated.stages[idx] = stage.completed(passed)

        if not passed:
            updated.status = ProcessStatus.COMPLETED
        elif idx == len(updated.stages) - 1:
            updated.status = ProcessStatus.COMPLETED
        else:
            updated.current_stage = idx + 1

        updated.updated_at = utcnow()
        self.save(updated)
        logger.info("Process %s stage %s (%d/%d) passed=%s -> status=%s currentStage=%d",
                    process.id, stage_id, idx + 1, len(updated.stages), passed,
                    updated.status.value, updated.current_stage)
        return updated

    def cancel_process(self, process: InterviewProcess) -> InterviewProcess:
        if process.status == ProcessStatus.COMPLETED:
            raise InvalidStateError(
                "A completed interview process cannot be cancelled",
                entity="interview_process", entity_id=process.id,
            )
        if process.status == ProcessStatus.CANCELLED:
            return process

        updated = process.model_copy(deep=True)
        updated.status = ProcessStatus.CANCELLED
        updated.updated_at = utcnow()
        self.save(updated)
        logger.info("Cancelled interview process %s", process.id)
        return updated

    def start_stage(self, process: InterviewProcess, stage_id: str) -> InterviewProcess:
        """Mark the current stage in_progress once answers start coming in"""
        idx = self._locate(process, stage_id)
        self._require_current(process, idx, "start")
        stage = process.stages[idx]
        if stage.status == StageStatus.IN_PROGRESS:
            return process

        updated = process.model_copy(deep=True)
        updated.stages[idx] = stage.started()
        updated.updated_at = utcnow()
        self.save(updated)
        return updated

    def attach_questions(
        self,
        process: InterviewProcess,
        stage_id: str,
        questions: Sequence[InterviewQuestion],
    ) -> InterviewProcess:
        idx = self._locate(process, stage_id)
        stage = process.stages[idx]
        if process.status != ProcessStatus.IN_PROGRESS or stage.is_completed:
            raise InvalidStateError(
                f"Questions can no longer be changed for stage '{stage.name}'",
                entity="interview_process", entity_id=process.id, stage_id=stage_id,
            )

        updated = process.model_copy(deep=True)
        updated.stages[idx] = stage.model_copy(update={"questions": [q.model_copy() for q in questions]})
        updated.updated_at = utcnow()
        self.save(updated)
        return updated

    # --------------------------------------------------------------- helpers

    @staticmethod
    def _locate(process: InterviewProcess, stage_id: str) -> int:
        idx = process.stage_index(stage_id)
        if idx is None:
            raise NotFoundError(
                f"Stage {stage_id} is not part of interview process {process.id}",
                entity="interview_process", entity_id=process.id, stage_id=stage_id,
            )
        return idx

    @staticmethod
    def _require_current(process: InterviewProcess, idx: int, action: str):
        stage = process.stages[idx]
        if process.status != ProcessStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Cannot {action} stage '{stage.name}': the process is {process.status.value}",
                entity="interview_process", entity_id=process.id, stage_id=stage.id,
            )
        if idx != process.current_stage:
            raise InvalidStateError(
                f"Cannot {action} stage '{stage.name}' (stage {idx + 1}) while stage "
                f"{process.current_stage + 1} is current; stages are completed in order",
                entity="interview_process", entity_id=process.id, stage_id=stage.id,
            )
