# recruitflow/services/process_setup.py - create a process from a stage configuration request

import asyncio
import logging
from typing import Optional, Sequence

from recruitflow.models.interview import InterviewProcess
from recruitflow.models.records import Candidate, JobPosting
from recruitflow.services.content_service import ContentService
from recruitflow.services.entity_store import CANDIDATES, JOB_POSTINGS, EntityStore
from recruitflow.services.process_machine import ProcessStateMachine
from recruitflow.services.stage_catalog import StageConfig, build_stages, stages_needing_questions

logger = logging.getLogger(__name__)


async def start_process(
    store: EntityStore,
    content_service: ContentService,
    candidate_id: str,
    job_posting_id: str,
    configs: Sequence[StageConfig],
    machine: Optional[ProcessStateMachine] = None,
) -> InterviewProcess:
    """
    Build the stages, pre-generate questions for the flagged ones and persist
    the new process. Nothing is written unless every generation call succeeds.
    """
    machine = machine or ProcessStateMachine(store)

    candidate = Candidate.from_record(store.get(CANDIDATES, candidate_id))
    job_posting = JobPosting.from_record(store.get(JOB_POSTINGS, job_posting_id))
    stages = build_stages(configs)

    flagged = set(stages_needing_questions(configs, stages))
    if flagged:
        targets = [stage for stage in stages if stage.id in flagged]
        logger.info("Generating questions for %d of %d stages", len(targets), len(stages))
        generated = await asyncio.gather(
            *(content_service.generate_questions(stage.type, job_posting, candidate) for stage in targets)
        )
        by_id = {stage.id: questions for stage, questions in zip(targets, generated)}
        stages = [
            stage.model_copy(update={"questions": by_id[stage.id]}) if stage.id in by_id else stage
            for stage in stages
        ]

    return machine.create_process(candidate.id, job_posting.id, stages)
