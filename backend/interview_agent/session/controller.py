from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict
from typing import Awaitable, Callable, Optional

from core.config import INTERVIEWER_DISPLAY_NAME
from core.logger import log_event
from core.state import InterviewPhase, UtteranceSource
from interview_agent.ai.llm import CompletionClient, build_completion_client
from interview_agent.assessment.coordinator import AssessmentCoordinator
from interview_agent.errors import InterviewAgentError, PreconditionError
from interview_agent.pipeline.utterance import UtterancePipeline
from interview_agent.report.synthesizer import ReportSynthesizer
from interview_agent.rules import MIN_FLUSH_ANSWER_CHARS
from interview_agent.session.event_bus import SessionEventBus, build_session_event_bus
from interview_agent.session.handle import SessionHandle
from interview_agent.session.models import Session
from interview_agent.session.store import SessionStore, build_session_store
from interview_agent.setup.pipeline import SetupPipeline
from interview_agent.speaker.classifier import DisplayNameSpeakerClassifier, SpeakerClassifier

logger = logging.getLogger("interview_agent.session.controller")

Handler = Callable[[dict], Awaitable[dict]]


class SessionController:
    """
    Lifecycle owner for the single interview session.

    IDLE -upload-> SETUP -start-> ACTIVE -end-> GENERATING_REPORT -report-> ENDED -reset-> IDLE

    An upload from any phase is an implicit reset into SETUP. Utterances are
    only accepted while ACTIVE and are dropped silently otherwise. Each
    transition persists the snapshot, then broadcasts.
    """

    def __init__(
        self,
        store: SessionStore,
        bus: SessionEventBus,
        client: CompletionClient,
        classifier: Optional[SpeakerClassifier] = None,
    ):
        self.handle = SessionHandle(store, bus)
        self.client = client
        self.classifier = classifier or DisplayNameSpeakerClassifier(INTERVIEWER_DISPLAY_NAME)
        self.setup = SetupPipeline(client)
        self.coordinator = AssessmentCoordinator(self.handle, client)
        self.pipeline = UtterancePipeline(self.handle, self.coordinator)
        self.synthesizer = ReportSynthesizer(client)
        self._setup_generation: Optional[int] = None
        self._report_generation: Optional[int] = None
        self._handlers: dict[str, Handler] = {
            "UPLOAD_RESUME": self._on_upload_resume,
            "START_INTERVIEW": self._on_start_interview,
            "UTTERANCE": self._on_utterance,
            "FORCE_ASSESS": self._on_force_assess,
            "END_INTERVIEW": self._on_end_interview,
            "RETRY_REPORT": self._on_retry_report,
            "RESET": self._on_reset,
            "GET_STATE": self._on_get_state,
            "SET_API_KEY": self._on_set_api_key,
            "GET_API_KEY": self._on_get_api_key,
        }

    @property
    def session(self) -> Session:
        return self.handle.session

    async def restore(self) -> Session:
        """Reload the last snapshot. Interrupted background work is not resumed."""
        return await self.handle.restore()

    async def dispatch(self, message: dict) -> dict:
        message_type = str((message or {}).get("type") or "").strip().upper()
        handler = self._handlers.get(message_type)
        try:
            if handler is None:
                raise PreconditionError(f"Unknown message type: {message_type or '<missing>'}")
            return await handler(dict(message or {}))
        except InterviewAgentError as exc:
            logger.info("Message rejected | type=%s err=%s", message_type, exc)
            return {"ok": False, "error": str(exc)}
        except Exception as exc:
            logger.exception("Message handler crashed | type=%s", message_type)
            await self.handle.emit("error", message=str(exc))
            return {"ok": False, "error": str(exc)}

    # ------------------------------------------------------------------
    # SETUP
    # ------------------------------------------------------------------

    async def upload_resume(self, resume_text: str, candidate_name: str = "") -> dict:
        resume_text = str(resume_text or "")
        if not resume_text.strip():
            raise PreconditionError("Resume text is empty")

        async with self.handle.lock:
            generation = self.handle.replace(
                Session(
                    session_id=str(uuid.uuid4()),
                    phase=InterviewPhase.SETUP,
                    candidate_name=str(candidate_name or ""),
                    resume_text=resume_text,
                )
            )
            self._setup_generation = generation
            self._report_generation = None
            await self.handle.persist()
            log_event("session", "setup_started", self.session.session_id, resume_text=resume_text)

        try:
            skills = await self.setup.extract_skills(resume_text)
            async with self.handle.lock:
                self._ensure_current(generation)
                self.session.skills = skills
                await self.handle.persist()

            question_bank = await self.setup.generate_question_bank(skills)
            async with self.handle.lock:
                self._ensure_current(generation)
                self.session.question_bank = question_bank
                self._setup_generation = None
                await self.handle.persist()
                log_event("session", "setup_complete", self.session.session_id, skills=len(skills))
                await self.handle.emit(
                    "setup_complete",
                    skills=[asdict(skill) for skill in skills],
                    question_bank={name: asdict(item) for name, item in question_bank.items()},
                )
        except Exception as exc:
            await self._abort_setup(generation, exc)
            if isinstance(exc, InterviewAgentError):
                raise
            raise InterviewAgentError(f"Setup failed: {exc}") from exc

        return {"ok": True}

    async def _abort_setup(self, generation: int, exc: Exception) -> None:
        logger.warning("Setup aborted | err=%s", exc)
        async with self.handle.lock:
            if not self.handle.is_current(generation):
                return
            self._setup_generation = None
            self.session.skills = []
            self.session.question_bank = {}
            await self.handle.persist()
            await self.handle.emit("error", message=f"Setup failed: {exc}")

    # ------------------------------------------------------------------
    # ACTIVE
    # ------------------------------------------------------------------

    async def start_interview(self) -> dict:
        async with self.handle.lock:
            session = self.session
            if session.phase != InterviewPhase.SETUP:
                raise PreconditionError(f"Cannot start an interview from phase {session.phase.value}")
            if self._setup_generation == self.handle.generation:
                raise PreconditionError("Setup is still running")

            session.phase = InterviewPhase.ACTIVE
            session.started_at = time.time()
            session.ended_at = None
            session.transcript = []
            session.assessments = []
            session.topic_timeline = []
            session.current_topic = None
            session.clear_pending()
            session.next_seq = 0
            await self.handle.persist()
            log_event("session", "interview_started", session.session_id)
            await self.handle.emit("interview_started", started_at=session.started_at)
            await self.handle.emit("capture_start")
        return {"ok": True}

    async def receive_utterance(self, raw: dict) -> dict:
        raw = dict(raw or {})
        text = str(raw.get("text") or "")
        speaker = self.classifier.classify(text, {"speaker_hint": raw.get("speaker"), "source": raw.get("source")})
        try:
            source = UtteranceSource(str(raw.get("source") or UtteranceSource.CAPTION.value))
        except ValueError:
            source = UtteranceSource.CAPTION
        try:
            timestamp = float(raw.get("timestamp"))
        except (TypeError, ValueError):
            timestamp = time.time()

        await self.pipeline.process(text, speaker, source, timestamp)
        return {"ok": True}

    async def force_assess(self) -> dict:
        async with self.handle.lock:
            if self.session.phase != InterviewPhase.ACTIVE:
                raise PreconditionError(f"Cannot assess from phase {self.session.phase.value}")
            if not self.session.has_pending_pair():
                raise PreconditionError("No pending question/answer pair to assess")
            task = self.coordinator.trigger()

        assessment = await task
        if assessment is None:
            return {"ok": False, "error": "Assessment failed"}
        return {"ok": True, "assessment": asdict(assessment)}

    # ------------------------------------------------------------------
    # GENERATING_REPORT / ENDED
    # ------------------------------------------------------------------

    async def end_interview(self) -> dict:
        async with self.handle.lock:
            session = self.session
            if session.phase != InterviewPhase.ACTIVE:
                raise PreconditionError(f"Cannot end an interview from phase {session.phase.value}")

            await self.handle.emit("capture_stop")
            self.coordinator.trigger(min_answer_chars=MIN_FLUSH_ANSWER_CHARS)
            # a pair too short to flush is dropped with the interview
            session.clear_pending()
            session.phase = InterviewPhase.GENERATING_REPORT
            session.ended_at = time.time()
            generation = self.handle.generation
            self._report_generation = generation
            await self.handle.persist()
            log_event("session", "generating_report", session.session_id, assessments=len(session.assessments))
            await self.handle.emit("generating_report")

        # best-effort: failed assessments were already reported as events
        await self.coordinator.wait_idle()
        ready = await self._generate_report(generation, session)
        return {"ok": True, "report_ready": ready}

    async def retry_report(self) -> dict:
        async with self.handle.lock:
            if self.session.phase != InterviewPhase.GENERATING_REPORT:
                raise PreconditionError(f"Cannot retry the report from phase {self.session.phase.value}")
            if self._report_generation == self.handle.generation:
                raise PreconditionError("Report generation is already running")
            session = self.session
            generation = self.handle.generation
            self._report_generation = generation
            await self.handle.emit("generating_report")

        ready = await self._generate_report(generation, session)
        return {"ok": True, "report_ready": ready}

    async def _generate_report(self, generation: int, session: Session) -> bool:
        try:
            report = await self.synthesizer.synthesize(session)
        except Exception as exc:
            if not isinstance(exc, InterviewAgentError):
                logger.exception("Unexpected report failure")
            async with self.handle.lock:
                if self.handle.is_current(generation):
                    self._report_generation = None
                    log_event("session", "report_failed", self.session.session_id, error=str(exc))
                    await self.handle.emit("error", message=f"Report generation failed: {exc}")
            return False

        async with self.handle.lock:
            if not self.handle.is_current(generation):
                logger.info("Dropping report for a replaced session")
                return False
            self._report_generation = None
            self.session.report = report
            self.session.phase = InterviewPhase.ENDED
            await self.handle.persist()
            log_event("session", "report_ready", self.session.session_id, recommendation=report.recommendation)
            await self.handle.emit("report_ready", report=asdict(report))
        return True

    # ------------------------------------------------------------------
    # RESET / queries
    # ------------------------------------------------------------------

    async def reset(self) -> dict:
        async with self.handle.lock:
            previous = self.session.session_id
            self.handle.replace(Session())
            self._setup_generation = None
            self._report_generation = None
            await self.handle.persist()
            log_event("session", "reset", previous)
            await self.handle.emit("state_reset")
        return {"ok": True}

    def get_state(self) -> dict:
        return {"session": self.session.to_dict()}

    def _ensure_current(self, generation: int) -> None:
        if not self.handle.is_current(generation):
            raise PreconditionError("Session was reset while setup was running")

    async def shutdown(self) -> None:
        self.coordinator.cancel_all()

    # ------------------------------------------------------------------
    # message adapters
    # ------------------------------------------------------------------

    async def _on_upload_resume(self, message: dict) -> dict:
        return await self.upload_resume(
            message.get("resumeText", message.get("resume_text", "")),
            message.get("candidateName", message.get("candidate_name", "")),
        )

    async def _on_start_interview(self, message: dict) -> dict:
        return await self.start_interview()

    async def _on_utterance(self, message: dict) -> dict:
        utterance = message.get("utterance")
        if not isinstance(utterance, dict):
            raise PreconditionError("UTTERANCE requires an utterance object")
        return await self.receive_utterance(utterance)

    async def _on_force_assess(self, message: dict) -> dict:
        return await self.force_assess()

    async def _on_end_interview(self, message: dict) -> dict:
        return await self.end_interview()

    async def _on_retry_report(self, message: dict) -> dict:
        return await self.retry_report()

    async def _on_reset(self, message: dict) -> dict:
        return await self.reset()

    async def _on_get_state(self, message: dict) -> dict:
        return self.get_state()

    async def _on_set_api_key(self, message: dict) -> dict:
        self.client.set_api_key(str(message.get("key") or ""))
        log_event("settings", "api_key_set", self.session.session_id, configured=bool(message.get("key")))
        return {"ok": True}

    async def _on_get_api_key(self, message: dict) -> dict:
        return {"key": self.client.masked_api_key()}


def build_session_controller() -> SessionController:
    return SessionController(
        store=build_session_store(),
        bus=build_session_event_bus(),
        client=build_completion_client(),
    )
