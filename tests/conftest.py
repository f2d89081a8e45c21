import asyncio
import json
from types import SimpleNamespace

import pytest

from recruitflow.models.records import Candidate, JobPosting
from recruitflow.services.content_service import ContentService
from recruitflow.services.entity_store import CANDIDATES, JOB_POSTINGS, JsonFileEntityStore
from recruitflow.services.interview_session import InterviewSessionController
from recruitflow.services.process_machine import ProcessStateMachine
from recruitflow.services.stage_catalog import StageConfig, build_stages


class FakeCompletions:
    """Stands in for `client.chat.completions`; replies based on the prompt"""

    def __init__(self):
        self.calls = []
        self.error = None
        self.delay = 0
        self.reply = None
        self.score = 85
        self.stage_score = None
        self.question_count = 5

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        prompt = kwargs["messages"][-1]["content"]
        if self.reply is not None:
            content = self.reply
        elif prompt.startswith("Assess the following"):
            score = self.score if self.stage_score is None else self.stage_score
            content = json.dumps({"overallScore": score, "summary": "Consistent answers",
                                  "nextSteps": "Schedule the next stage"})
        elif prompt.startswith("Generate exactly"):
            content = json.dumps([
                {"text": f"Question {i + 1}?", "category": "general", "expectedAnswer": "A structured answer"}
                for i in range(self.question_count)
            ])
        else:
            content = json.dumps({"score": self.score, "feedback": "Solid answer"})
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    def prompts(self):
        return [call["messages"][-1]["content"] for call in self.calls]


class FakeChatClient:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def store(tmp_path):
    return JsonFileEntityStore(str(tmp_path / "data"))


@pytest.fixture
def chat_client():
    return FakeChatClient()


@pytest.fixture
def completions(chat_client):
    return chat_client.completions


@pytest.fixture
def content_service(chat_client):
    return ContentService(client=chat_client, model="test-model", question_count=5, timeout=1)


@pytest.fixture
def machine(store):
    return ProcessStateMachine(store)


@pytest.fixture
def controller(store, content_service, machine):
    return InterviewSessionController(store, content_service, machine=machine, pass_threshold=70)


@pytest.fixture
def job_posting(store):
    posting = JobPosting(
        title="Store Manager",
        department="Operations",
        location="Lyon",
        description="Run a hypermarket floor",
        experience="manager",
        status="published",
    )
    store.put(JOB_POSTINGS, posting.to_record())
    return posting


@pytest.fixture
def candidate(store):
    person = Candidate(name="Sam Rivera", email="sam@example.com", position="Store Manager",
                       skills=["inventory", "scheduling"])
    store.put(CANDIDATES, person.to_record())
    return person


@pytest.fixture
def make_process(machine, candidate, job_posting):
    """Create a persisted process with the first `count` standard stage types"""
    types = ["technical", "behavioral", "final"]

    def _make(count=3):
        configs = [StageConfig(name=f"Stage {idx + 1}", type=types[idx]) for idx in range(count)]
        return machine.create_process(candidate.id, job_posting.id, build_stages(configs))

    return _make


@pytest.fixture
def answers():
    return [f"A detailed answer number {i + 1}" for i in range(5)]
