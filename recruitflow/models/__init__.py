"""Pydantic models package"""

from .interview import (
    InterviewQuestion, InterviewStage, InterviewProcess, Interview, Interviewer,
    InterviewAnalysis, AnswerAnalysis, StageAssessment, StageType, StageStatus, ProcessStatus,
    InterviewStatus, InterviewPhase, StageCompleted, StageInProgress, StagePending,
)
from .records import JobPosting, Candidate
from .common import APIResponse, ErrorResponse

__all__ = [
    "InterviewQuestion", "InterviewStage", "InterviewProcess", "Interview", "Interviewer",
    "InterviewAnalysis", "AnswerAnalysis", "StageAssessment", "StageType", "StageStatus", "ProcessStatus",
    "InterviewStatus", "InterviewPhase", "StageCompleted", "StageInProgress", "StagePending",
    "JobPosting", "Candidate",
    "APIResponse", "ErrorResponse"
]
