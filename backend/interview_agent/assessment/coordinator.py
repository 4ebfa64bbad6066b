from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from typing import Optional

from core.logger import log_event
from interview_agent.ai.llm import CompletionClient
from interview_agent.ai.parsing import parse_completion
from interview_agent.ai.prompts import build_assessment_request
from interview_agent.ai.schemas import AssessmentResult
from interview_agent.errors import InterviewAgentError
from interview_agent.session.handle import SessionHandle
from interview_agent.session.models import Assessment, FollowUpQuestion

logger = logging.getLogger("interview_agent.assessment.coordinator")


@dataclass(frozen=True)
class PendingPair:
    question: str
    answer: str
    topic: str


class AssessmentCoordinator:
    """
    Scores question/answer pairs one completion call at a time.

    `trigger` must run under the session lock: it empties the pending pair
    before anything can suspend, so a second trigger sees nothing to assess.
    The scoring itself runs as a background task.
    """

    def __init__(self, handle: SessionHandle, client: CompletionClient):
        self.handle = handle
        self.client = client
        self._call_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    def take_pending(self, min_answer_chars: int = 0) -> Optional[PendingPair]:
        session = self.handle.session
        question = session.pending_question
        answer = session.pending_answer
        if not question or not answer or len(answer) <= min_answer_chars:
            return None

        topic = session.pending_question_topic or session.current_topic or "General"
        session.clear_pending()
        return PendingPair(question=question, answer=answer, topic=topic)

    def trigger(self, min_answer_chars: int = 0) -> Optional[asyncio.Task]:
        pair = self.take_pending(min_answer_chars)
        if pair is None:
            return None

        log_event("assessment", "triggered", self.handle.session.session_id, topic=pair.topic, answer=pair.answer)
        task = asyncio.create_task(self._run(pair, self.handle.generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def assess(self, question: str, answer: str, topic: str) -> Assessment:
        async with self._call_lock:
            raw = await self.client.complete(build_assessment_request(question, answer, topic))
        result = parse_completion(raw, AssessmentResult)
        return Assessment(
            question=question,
            answer=answer,
            topic=topic,
            timestamp=time.time(),
            score=result.score,
            verdict=result.verdict,
            summary=result.summary,
            key_strengths=tuple(result.key_strengths),
            key_gaps=tuple(result.key_gaps),
            follow_up_questions=tuple(
                FollowUpQuestion(question=item.question, rationale=item.rationale)
                for item in result.follow_up_questions
            ),
        )

    async def _run(self, pair: PendingPair, generation: int) -> Optional[Assessment]:
        try:
            assessment = await self.assess(pair.question, pair.answer, pair.topic)
        except Exception as exc:
            if not isinstance(exc, InterviewAgentError):
                logger.exception("Unexpected assessment failure")
            else:
                logger.warning("Assessment failed | topic=%s err=%s", pair.topic, exc)
            async with self.handle.lock:
                if self.handle.is_current(generation):
                    await self.handle.emit("assessment_error", message=str(exc), topic=pair.topic)
            return None

        async with self.handle.lock:
            if not self.handle.is_current(generation):
                logger.info("Dropping assessment for a replaced session | topic=%s", pair.topic)
                return None
            self.handle.session.assessments.append(assessment)
            await self.handle.persist()
            log_event("assessment", "ready", self.handle.session.session_id, topic=assessment.topic, score=assessment.score)
            await self.handle.emit("assessment_ready", assessment=asdict(assessment))
        return assessment

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
