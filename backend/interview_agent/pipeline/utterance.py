from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from core.logger import log_event
from core.state import InterviewPhase, Speaker, UtteranceSource
from interview_agent.assessment.coordinator import AssessmentCoordinator
from interview_agent.rules import MIN_ANSWER_CHARS, TRANSCRIPT_EVENT_WINDOW, TRANSCRIPT_MAX_ENTRIES
from interview_agent.session.handle import SessionHandle
from interview_agent.session.models import TopicShift, Utterance
from interview_agent.topic.detector import detect_topic

logger = logging.getLogger("interview_agent.pipeline.utterance")


def transcript_window(transcript: list[Utterance], size: int = TRANSCRIPT_EVENT_WINDOW) -> list[dict]:
    return [
        {**asdict(item), "speaker": item.speaker.value, "source": item.source.value, "id": item.id}
        for item in transcript[-size:]
    ]


class UtterancePipeline:
    """
    Consumes one utterance at a time while the interview is ACTIVE.

    Interviewer turns delimit question/answer pairs: candidate (and unknown)
    text accumulates into the pending answer, and the next interviewer turn
    hands the finished pair to the assessment coordinator without waiting.
    """

    def __init__(
        self,
        handle: SessionHandle,
        coordinator: AssessmentCoordinator,
        min_answer_chars: int = MIN_ANSWER_CHARS,
        max_transcript: int = TRANSCRIPT_MAX_ENTRIES,
    ):
        self.handle = handle
        self.coordinator = coordinator
        self.min_answer_chars = min_answer_chars
        self.max_transcript = max_transcript

    async def process(
        self,
        text: str,
        speaker: Speaker,
        source: UtteranceSource,
        timestamp: float,
    ) -> Optional[Utterance]:
        text = str(text or "").strip()
        if not text:
            return None

        async with self.handle.lock:
            session = self.handle.session
            if session.phase != InterviewPhase.ACTIVE:
                return None

            utterance = Utterance(
                text=text,
                speaker=speaker,
                source=source,
                timestamp=float(timestamp),
                seq=session.next_seq,
            )
            session.next_seq += 1
            session.transcript.append(utterance)
            if len(session.transcript) > self.max_transcript:
                del session.transcript[: len(session.transcript) - self.max_transcript]

            await self._track_topic(utterance)
            self._accumulate(utterance)

            await self.handle.persist()
            await self.handle.emit("transcript_updated", transcript=transcript_window(session.transcript))
            return utterance

    async def _track_topic(self, utterance: Utterance) -> None:
        session = self.handle.session
        detected = detect_topic(utterance.text, session.skills)
        if detected is None or detected == session.current_topic:
            return

        if session.topic_timeline and utterance.timestamp <= session.topic_timeline[-1].timestamp:
            logger.warning(
                "Non-increasing timestamp ignored for topic tracking | ts=%s last=%s",
                utterance.timestamp,
                session.topic_timeline[-1].timestamp,
            )
            return

        session.topic_timeline.append(
            TopicShift(topic=detected, timestamp=utterance.timestamp, from_topic=session.current_topic)
        )
        previous = session.current_topic
        session.current_topic = detected
        log_event("topic", "switched", session.session_id, topic=detected, previous=previous)
        await self.handle.emit("topic_switched", topic=detected, previous=previous, timestamp=utterance.timestamp)

    def _accumulate(self, utterance: Utterance) -> None:
        session = self.handle.session
        if utterance.speaker == Speaker.INTERVIEWER:
            self.coordinator.trigger(min_answer_chars=self.min_answer_chars)
            session.pending_question = utterance.text
            session.pending_question_topic = session.current_topic
            session.pending_answer = ""
            return

        session.pending_answer = f"{session.pending_answer} {utterance.text}".strip()
