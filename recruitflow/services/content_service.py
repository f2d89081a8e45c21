# recruitflow/services/content_service.py - OpenAI-backed question generation and answer analysis

import asyncio
import json
import logging
import math
import re
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError as SchemaError

from recruitflow.core.config import get_settings
from recruitflow.core.exceptions import ExternalServiceError
from recruitflow.models.interview import AnswerAnalysis, InterviewQuestion, StageAssessment, StageType
from recruitflow.models.records import Candidate, JobPosting

logger = logging.getLogger(__name__)

QUESTION_SYSTEM_PROMPT = (
    "You are an experienced recruiter preparing structured interview questions. "
    "Respond with JSON only."
)
ANALYSIS_SYSTEM_PROMPT = (
    "You are an interview assessor. Score candidate answers against the expected answer "
    "criteria and respond with JSON only."
)


def extract_json_array(s: str) -> str:
    """Extracts the first JSON array of objects from a string."""
    pattern = r'\[\s*(?:\{.*?\}\s*,?\s*)+\]'
    match = re.search(pattern, s, flags=re.DOTALL)
    if not match:
        raise ValueError("No JSON array found in LLM response")
    return match.group(0)


def extract_json_object(s: str) -> str:
    """Extracts the outermost JSON object from a string."""
    match = re.search(r'\{.*\}', s, flags=re.DOTALL)
    if not match:
        raise ValueError("No JSON object found in LLM response")
    return match.group(0)


def _text(item: Dict[str, Any], *keys: str) -> str:
    """First non-blank string value among `keys`; anything else counts as missing"""
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _score(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    return score if math.isfinite(score) else None


def parse_questions(content: str, count: int, stage_type: StageType) -> List[InterviewQuestion]:
    try:
        raw = json.loads(extract_json_array(content))
    except ValueError as e:
        raise ExternalServiceError(f"Could not parse generated questions: {e}", entity="stage") from e
    if not isinstance(raw, list):
        raise ExternalServiceError("Generated questions are not a JSON array", entity="stage")

    questions = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        text = _text(item, "text", "question")
        if not text:
            continue
        try:
            questions.append(InterviewQuestion(
                text=text,
                category=_text(item, "category") or stage_type.value,
                expected_answer=_text(item, "expectedAnswer")
                or "Looking for clear, structured responses demonstrating relevant experience and knowledge",
            ))
        except SchemaError as e:
            raise ExternalServiceError(f"Generated question is malformed: {e}", entity="stage") from e

    if len(questions) < count:
        raise ExternalServiceError(
            f"Expected {count} questions from the content service, got {len(questions)}",
            entity="stage",
        )
    return questions[:count]


def parse_analysis(content: str) -> AnswerAnalysis:
    score: Optional[float] = None
    feedback = ""
    try:
        data = json.loads(extract_json_object(content))
    except ValueError:
        data = None

    if isinstance(data, dict):
        score = _score(data.get("score"))
        feedback = _text(data, "feedback")
    else:
        # plain-text replies of the form "Score: 80\nFeedback: ..."
        score_match = re.search(r'score:\s*(\d+(?:\.\d+)?)', content, flags=re.IGNORECASE)
        feedback_match = re.search(r'feedback:([\s\S]*?)(?=\n\n|$)', content, flags=re.IGNORECASE)
        if score_match:
            score = float(score_match.group(1))
        if feedback_match:
            feedback = feedback_match.group(1).strip()

    if score is None:
        raise ExternalServiceError("Could not parse a score from the analysis response", entity="interview")
    try:
        return AnswerAnalysis(score=min(max(score, 0.0), 100.0), feedback=feedback or "No specific feedback provided")
    except SchemaError as e:
        raise ExternalServiceError(f"Analysis response is malformed: {e}", entity="interview") from e


def parse_stage_feedback(content: str, fallback_score: float) -> StageAssessment:
    """
    Overall stage assessment from either a JSON object or the plain
    "Overall score: / Summary: / Next steps:" layout. A missing or unusable
    score falls back to `fallback_score`.
    """
    score: Optional[float] = None
    summary = next_steps = ""
    try:
        data = json.loads(extract_json_object(content))
    except ValueError:
        data = None

    if isinstance(data, dict):
        score = _score(data.get("overallScore"))
        summary = _text(data, "summary", "feedback")
        next_steps = _text(data, "nextSteps")
    else:
        score_match = re.search(r'overall score:\s*(\d+(?:\.\d+)?)', content, flags=re.IGNORECASE)
        summary_match = re.search(r'summary:([\s\S]*?)(?=next steps:|$)', content, flags=re.IGNORECASE)
        steps_match = re.search(r'next steps:([\s\S]*?)$', content, flags=re.IGNORECASE)
        if score_match:
            score = float(score_match.group(1))
        if summary_match:
            summary = summary_match.group(1).strip()
        if steps_match:
            next_steps = steps_match.group(1).strip()

    if score is None:
        score = fallback_score
    try:
        return StageAssessment(
            overall_score=min(max(score, 0.0), 100.0),
            feedback=summary or "No overall feedback provided",
            next_steps=next_steps or "No next steps provided",
        )
    except SchemaError as e:
        raise ExternalServiceError(f"Stage assessment is malformed: {e}", entity="interview") from e


class ContentService:
    """
    Thin wrapper over the chat completions API.

    Calls are never retried here (``max_retries=0``); retry policy belongs to
    the caller. Any provider error, timeout or unparseable reply surfaces as
    ExternalServiceError.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        question_count: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.question_count = question_count or settings.QUESTION_COUNT
        self.timeout = timeout or settings.CONTENT_TIMEOUT_SECONDS

    @property
    def client(self):
        if self._client is None:
            settings = get_settings()
            if not settings.OPENAI_API_KEY:
                raise ExternalServiceError("OpenAI API key is not configured")
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def _complete(self, system: str, prompt: str, temperature: float, max_tokens: int) -> str:
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt}
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Content service timed out after %.1fs", self.timeout)
            raise ExternalServiceError(f"Content service timed out after {self.timeout}s") from e
        except OpenAIError as e:
            logger.warning("Content service call failed: %s", e)
            raise ExternalServiceError(f"Content service call failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExternalServiceError("Content service returned an empty response")
        return content.strip()

    async def generate_questions(
        self,
        stage_type: StageType,
        job_posting: JobPosting,
        candidate: Optional[Candidate] = None,
    ) -> List[InterviewQuestion]:
        """Generate exactly `question_count` questions for one stage"""
        candidate_info = ""
        if candidate and candidate.skills:
            candidate_info = f"\nCandidate skills: {', '.join(candidate.skills)}\n"

        prompt = f"""Generate exactly {self.question_count} interview questions for a {stage_type.value} interview for a {job_posting.title} position.

Job details:
Title: {job_posting.title}
Department: {job_posting.department}
Description: {job_posting.description}
Experience Level: {job_posting.experience}
{candidate_info}
Format each question as a JSON object with these exact fields:
{{
  "text": "question text here",
  "category": "type of question",
  "expectedAnswer": "what to look for in the answer"
}}

Return exactly {self.question_count} questions in a JSON array."""

        content = await self._complete(QUESTION_SYSTEM_PROMPT, prompt, temperature=0.7, max_tokens=1500)
        questions = parse_questions(content, self.question_count, stage_type)
        logger.info("Generated %d %s questions for job posting %s", len(questions), stage_type.value, job_posting.id)
        return questions

    async def analyze(self, question: InterviewQuestion, answer: str) -> AnswerAnalysis:
        """Score one answer 0-100 against the question's expected-answer rubric"""
        prompt = f"""Analyze the following interview answer for the question: "{question.text}"

Expected answer criteria:
{question.expected_answer}

Candidate's answer:
{answer[:2000]}

Respond with a JSON object: {{"score": <integer 0-100>, "feedback": "<strengths and areas for improvement>"}}"""

        content = await self._complete(ANALYSIS_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=300)
        return parse_analysis(content)

    async def analyze_all(
        self,
        questions: Sequence[InterviewQuestion],
        answers: Sequence[str],
    ) -> List[AnswerAnalysis]:
        """Analyze every (question, answer) pair concurrently; fails as a whole"""
        return list(await asyncio.gather(
            *(self.analyze(question, answer) for question, answer in zip(questions, answers))
        ))

    async def stage_feedback(
        self,
        stage_type: StageType,
        questions: Sequence[InterviewQuestion],
        answers: Sequence[str],
        results: Sequence[AnswerAnalysis],
    ) -> StageAssessment:
        """Overall assessment of a stage; the score falls back to the mean of `results`"""
        responses = "\n".join(
            f"""
Question: {question.text}
Answer: {answer[:2000]}
Score: {round(result.score)}
Individual Feedback: {result.feedback}"""
            for question, answer, result in zip(questions, answers, results)
        )
        prompt = f"""Assess the following interview responses for a {stage_type.value} interview:
{responses}

Respond with a JSON object: {{"overallScore": <integer 0-100>, "summary": "<the candidate's performance>", "nextSteps": "<recommended next steps>"}}"""

        content = await self._complete(ANALYSIS_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=600)
        return parse_stage_feedback(content, mean_score(results))


# Global content service instance
_content_service: Optional[ContentService] = None


def get_content_service() -> ContentService:
    """Get content service instance (singleton pattern)"""
    global _content_service
    if _content_service is None:
        _content_service = ContentService()
    return _content_service


def mean_score(results: Sequence[AnswerAnalysis]) -> float:
    if not results:
        return 0.0
    return round(sum(r.score for r in results) / len(results), 1)
