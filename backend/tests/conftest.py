import asyncio
import json
import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Read once by core.config at import time.
os.environ.setdefault("USE_FILE_SESSION_STORE", "false")
os.environ.setdefault("INTERVIEW_EVENT_BUS_ENABLED", "false")

from interview_agent.errors import CompletionError  # noqa: E402
from interview_agent.session.controller import SessionController  # noqa: E402
from interview_agent.session.event_bus import LocalSessionEventBus  # noqa: E402
from interview_agent.session.store import LocalSessionStore  # noqa: E402


SKILLS_PAYLOAD = {
    "skills": [
        {"name": "Kubernetes", "category": "tool", "yearsOfExperience": 3, "proficiencySignal": "proficient"},
        {"name": "PostgreSQL", "category": "tool", "yearsOfExperience": None, "proficiencySignal": "familiar"},
    ]
}

QUESTIONS_PAYLOAD = {
    "questionBank": {
        "Kubernetes": {
            "basic": "What is a pod?",
            "intermediate": "How do you roll out a deployment safely?",
            "advanced": "How would you debug a noisy-neighbour node?",
        },
        "PostgreSQL": {
            "basic": "What is an index?",
            "intermediate": "Explain MVCC.",
            "advanced": "How would you shard a hot table?",
        },
    }
}

ASSESSMENT_PAYLOAD = {
    "score": 4,
    "verdict": "strong",
    "summary": "Clear and correct.",
    "keyStrengths": ["precise terminology"],
    "keyGaps": ["no mention of failure modes"],
    "followUpQuestions": [{"question": "What breaks first?", "rationale": "probe depth"}],
}

REPORT_PAYLOAD = {
    "recommendation": "hire",
    "overallScore": 7,
    "executiveSummary": "Solid operator with good fundamentals.",
    "skillAssessments": [{"skill": "Kubernetes", "rating": 4, "verdict": "strength"}],
    "strengths": ["hands-on cluster work"],
    "areasToImprove": ["database internals"],
    "topicsCovered": ["whatever the model says"],
    "topicsMissed": [],
}


def _kind(request) -> str:
    system = request.system_instruction.lower()
    if "extract skills" in system:
        return "skills"
    if "interview questions" in system:
        return "questions"
    if "live technical interview" in system:
        return "assessment"
    if "hiring manager" in system:
        return "report"
    return "unknown"


class FakeCompletionClient:
    """Scripted completion service keyed by request kind."""

    def __init__(self):
        self.requests = []
        self.responses = {
            "skills": SKILLS_PAYLOAD,
            "questions": QUESTIONS_PAYLOAD,
            "assessment": ASSESSMENT_PAYLOAD,
            "report": REPORT_PAYLOAD,
        }
        self.failures: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self._api_key = "sk-ant-test-key-0123456789"

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.requests]

    async def complete(self, request) -> str:
        kind = _kind(request)
        self.requests.append((kind, request))
        gate = self.gates.get(kind)
        if gate is not None:
            await gate.wait()
        if kind in self.failures:
            raise CompletionError(f"{kind} call failed")
        payload = self.responses[kind]
        if isinstance(payload, str):
            return payload
        return "```json\n" + json.dumps(payload) + "\n```"

    def set_api_key(self, key: str) -> None:
        self._api_key = key

    def masked_api_key(self):
        return self._api_key[:12] + "..." if self._api_key else None


class EventRecorder:
    def __init__(self):
        self.events: list[dict] = []

    async def __call__(self, payload: dict) -> None:
        self.events.append(payload)

    def types(self) -> list[str]:
        return [event["type"] for event in self.events]

    def of(self, event_type: str) -> list[dict]:
        return [event for event in self.events if event["type"] == event_type]


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def store() -> LocalSessionStore:
    return LocalSessionStore()


@pytest.fixture
def bus() -> LocalSessionEventBus:
    return LocalSessionEventBus()


@pytest.fixture
def events(bus) -> EventRecorder:
    recorder = EventRecorder()
    bus.subscribe(recorder)
    return recorder


@pytest.fixture
def controller(store, bus, fake_client) -> SessionController:
    return SessionController(store=store, bus=bus, client=fake_client)


async def start_active_interview(controller: SessionController, resume: str = "Kubernetes and PostgreSQL"):
    result = await controller.dispatch({"type": "UPLOAD_RESUME", "resumeText": resume, "candidateName": "Ada"})
    assert result == {"ok": True}
    result = await controller.dispatch({"type": "START_INTERVIEW"})
    assert result == {"ok": True}


async def say(controller: SessionController, speaker: str, text: str, timestamp: float):
    return await controller.dispatch(
        {
            "type": "UTTERANCE",
            "utterance": {"text": text, "speaker": speaker, "source": "caption", "timestamp": timestamp},
        }
    )
