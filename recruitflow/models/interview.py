from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class RecordModel(BaseModel):
    """Base for records that round-trip through the entity store as camelCase JSON"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        # unset optionals are left out, so `passed` is absent on open stages
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, data: dict):
        return cls.model_validate(data)


class StageType(str, Enum):
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    CULTURAL_FIT = "cultural_fit"
    FINAL = "final"


class StageStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ProcessStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InterviewPhase(str, Enum):
    """Where a single interview session stands in its question/answer/verdict cycle"""
    PENDING = "pending"
    READY_FOR_ANSWERS = "ready_for_answers"
    NEEDS_ANALYSIS = "needs_analysis"
    AWAITING_VERDICT = "awaiting_verdict"
    TERMINAL = "terminal"


# Explicit per-stage outcome, derived from (status, passed)

@dataclass(frozen=True)
class StagePending:
    pass


@dataclass(frozen=True)
class StageInProgress:
    pass


@dataclass(frozen=True)
class StageCompleted:
    passed: bool


StageOutcome = Union[StagePending, StageInProgress, StageCompleted]


class InterviewQuestion(RecordModel):
    text: str
    category: str = ""
    expected_answer: str = ""


class InterviewStage(RecordModel):
    id: str = Field(default_factory=new_id)
    name: str
    type: StageType
    order: int = Field(ge=0)
    status: StageStatus = StageStatus.PENDING
    passed: Optional[bool] = None
    questions: List[InterviewQuestion] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_verdict_matches_status(self):
        if self.status == StageStatus.COMPLETED and self.passed is None:
            raise ValueError(f"stage {self.id} is completed but has no verdict")
        if self.status != StageStatus.COMPLETED and self.passed is not None:
            raise ValueError(f"stage {self.id} carries a verdict while {self.status.value}")
        return self

    @property
    def outcome(self) -> StageOutcome:
        if self.status == StageStatus.COMPLETED:
            return StageCompleted(passed=bool(self.passed))
        if self.status == StageStatus.IN_PROGRESS:
            return StageInProgress()
        return StagePending()

    @property
    def is_completed(self) -> bool:
        return self.status == StageStatus.COMPLETED

    def started(self) -> "InterviewStage":
        return self.model_copy(update={"status": StageStatus.IN_PROGRESS})

    def completed(self, passed: bool) -> "InterviewStage":
        return self.model_copy(update={"status": StageStatus.COMPLETED, "passed": passed})


class InterviewProcess(RecordModel):
    id: str = Field(default_factory=new_id)
    candidate_id: str
    job_posting_id: str
    stages: List[InterviewStage] = Field(min_length=1)
    current_stage: int = 0
    status: ProcessStatus = ProcessStatus.IN_PROGRESS
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_stage_sequence(self):
        orders = [stage.order for stage in self.stages]
        if orders != list(range(len(self.stages))):
            raise ValueError(f"stage orders {orders} must match their positions")
        if not 0 <= self.current_stage < len(self.stages):
            raise ValueError(f"currentStage {self.current_stage} is outside 0..{len(self.stages) - 1}")

        finished = self.has_failed_stage() or self.stages[-1].passed is True
        if self.status == ProcessStatus.COMPLETED and not finished:
            raise ValueError("process is completed but no stage failed and the last stage has not passed")
        if self.status == ProcessStatus.IN_PROGRESS and finished:
            raise ValueError("process is still in progress after a terminal stage result")
        return self

    def has_failed_stage(self) -> bool:
        return any(stage.passed is False for stage in self.stages)

    def stage_index(self, stage_id: str) -> Optional[int]:
        for idx, stage in enumerate(self.stages):
            if stage.id == stage_id:
                return idx
        return None

    @property
    def current(self) -> InterviewStage:
        return self.stages[self.current_stage]

    @property
    def is_last_stage(self) -> bool:
        return self.current_stage == len(self.stages) - 1


class Interviewer(RecordModel):
    name: str
    email: str = ""
    role: str = ""


class AnswerAnalysis(RecordModel):
    score: float = Field(ge=0, le=100)
    feedback: str = ""


class StageAssessment(RecordModel):
    """Overall judgement of one stage's answers"""
    overall_score: float = Field(ge=0, le=100)
    feedback: str
    next_steps: str


class InterviewAnalysis(RecordModel):
    overall_score: float = Field(ge=0, le=100)
    feedback: str
    next_steps: str = ""
    recommended_pass: bool
    results: List[AnswerAnalysis] = Field(default_factory=list)
    analyzed_at: datetime = Field(default_factory=utcnow)


class Interview(RecordModel):
    id: str = Field(default_factory=new_id)
    candidate_id: str
    job_posting_id: str
    process_id: str
    # snapshot of process.stages[i]; refreshed from the process, never edited on its own
    stage: InterviewStage
    status: InterviewStatus = InterviewStatus.SCHEDULED
    scheduled_date: Optional[datetime] = None
    interviewer: Optional[Interviewer] = None
    answers: Optional[List[str]] = None
    analysis: Optional[InterviewAnalysis] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (InterviewStatus.COMPLETED, InterviewStatus.CANCELLED)
