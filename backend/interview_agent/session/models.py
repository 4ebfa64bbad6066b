from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from core.state import InterviewPhase, Speaker, UtteranceSource


@dataclass
class Skill:
    name: str
    category: str = "concept"  # language | framework | tool | concept | soft
    proficiency_signal: str = "mentioned"  # expert | proficient | familiar | mentioned
    years_of_experience: Optional[float] = None


@dataclass
class QuestionSet:
    basic: str = ""
    intermediate: str = ""
    advanced: str = ""


@dataclass(frozen=True)
class Utterance:
    """
    One timestamped unit of spoken text.
    `seq` is the arrival order, so utterances sharing a timestamp stay distinct.
    """
    text: str
    speaker: Speaker = Speaker.UNKNOWN
    source: UtteranceSource = UtteranceSource.CAPTION
    timestamp: float = 0.0
    seq: int = 0

    @property
    def id(self) -> str:
        return f"{self.timestamp}-{self.seq}"


@dataclass(frozen=True)
class TopicShift:
    topic: str
    timestamp: float
    from_topic: Optional[str] = None


@dataclass(frozen=True)
class FollowUpQuestion:
    question: str
    rationale: str = ""


@dataclass(frozen=True)
class Assessment:
    question: str
    answer: str
    topic: str
    timestamp: float
    score: int
    verdict: str  # strong | adequate | weak | off-topic
    summary: str = ""
    key_strengths: tuple[str, ...] = ()
    key_gaps: tuple[str, ...] = ()
    follow_up_questions: tuple[FollowUpQuestion, ...] = ()


@dataclass(frozen=True)
class SkillRating:
    skill: str
    rating: int
    verdict: str  # strength | adequate | gap


@dataclass(frozen=True)
class Report:
    recommendation: str  # strong_hire | hire | no_hire | strong_no_hire
    overall_score: int
    executive_summary: str
    skill_assessments: tuple[SkillRating, ...] = ()
    strengths: tuple[str, ...] = ()
    areas_to_improve: tuple[str, ...] = ()
    topics_covered: tuple[str, ...] = ()
    topics_missed: tuple[str, ...] = ()


@dataclass
class Session:
    session_id: str = ""  # assigned when a resume is uploaded
    phase: InterviewPhase = InterviewPhase.IDLE
    candidate_name: str = ""
    resume_text: str = ""
    skills: list[Skill] = field(default_factory=list)
    question_bank: dict[str, QuestionSet] = field(default_factory=dict)
    transcript: list[Utterance] = field(default_factory=list)
    assessments: list[Assessment] = field(default_factory=list)
    topic_timeline: list[TopicShift] = field(default_factory=list)
    current_topic: Optional[str] = None
    pending_question: str = ""
    pending_question_topic: Optional[str] = None
    pending_answer: str = ""
    report: Optional[Report] = None
    started_at: Optional[float] = None
    ended_at: Optional[float] = None
    next_seq: int = 0

    def has_pending_pair(self) -> bool:
        return bool(self.pending_question) and bool(self.pending_answer)

    def clear_pending(self) -> None:
        self.pending_question = ""
        self.pending_question_topic = None
        self.pending_answer = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        data["transcript"] = [
            {**asdict(item), "speaker": item.speaker.value, "source": item.source.value, "id": item.id}
            for item in self.transcript
        ]
        data["topic_timeline"] = [
            {"topic": item.topic, "timestamp": item.timestamp, "from": item.from_topic}
            for item in self.topic_timeline
        ]
        return data

    @classmethod
    def from_dict(cls, raw: Any) -> "Session":
        if not isinstance(raw, dict):
            return cls()

        session = cls(
            session_id=str(raw.get("session_id") or ""),
            phase=InterviewPhase(str(raw.get("phase") or InterviewPhase.IDLE.value)),
            candidate_name=str(raw.get("candidate_name") or ""),
            resume_text=str(raw.get("resume_text") or ""),
            current_topic=raw.get("current_topic"),
            pending_question=str(raw.get("pending_question") or ""),
            pending_question_topic=raw.get("pending_question_topic"),
            pending_answer=str(raw.get("pending_answer") or ""),
            started_at=raw.get("started_at"),
            ended_at=raw.get("ended_at"),
            next_seq=int(raw.get("next_seq") or 0),
        )
        session.skills = [
            Skill(
                name=str(item.get("name") or ""),
                category=str(item.get("category") or "concept"),
                proficiency_signal=str(item.get("proficiency_signal") or "mentioned"),
                years_of_experience=item.get("years_of_experience"),
            )
            for item in raw.get("skills") or []
            if isinstance(item, dict)
        ]
        session.question_bank = {
            str(name): QuestionSet(**{k: str(v or "") for k, v in (questions or {}).items() if k in {"basic", "intermediate", "advanced"}})
            for name, questions in (raw.get("question_bank") or {}).items()
        }
        session.transcript = [
            Utterance(
                text=str(item.get("text") or ""),
                speaker=Speaker(str(item.get("speaker") or Speaker.UNKNOWN.value)),
                source=UtteranceSource(str(item.get("source") or UtteranceSource.CAPTION.value)),
                timestamp=float(item.get("timestamp") or 0.0),
                seq=int(item.get("seq") or 0),
            )
            for item in raw.get("transcript") or []
            if isinstance(item, dict)
        ]
        session.topic_timeline = [
            TopicShift(
                topic=str(item.get("topic") or ""),
                timestamp=float(item.get("timestamp") or 0.0),
                from_topic=item.get("from"),
            )
            for item in raw.get("topic_timeline") or []
            if isinstance(item, dict)
        ]
        session.assessments = [
            assessment_from_dict(item)
            for item in raw.get("assessments") or []
            if isinstance(item, dict)
        ]
        report = raw.get("report")
        session.report = report_from_dict(report) if isinstance(report, dict) else None
        return session


def assessment_from_dict(item: dict) -> Assessment:
    return Assessment(
        question=str(item.get("question") or ""),
        answer=str(item.get("answer") or ""),
        topic=str(item.get("topic") or "General"),
        timestamp=float(item.get("timestamp") or 0.0),
        score=int(item.get("score") or 0),
        verdict=str(item.get("verdict") or ""),
        summary=str(item.get("summary") or ""),
        key_strengths=tuple(item.get("key_strengths") or ()),
        key_gaps=tuple(item.get("key_gaps") or ()),
        follow_up_questions=tuple(
            FollowUpQuestion(question=str(f.get("question") or ""), rationale=str(f.get("rationale") or ""))
            for f in item.get("follow_up_questions") or ()
            if isinstance(f, dict)
        ),
    )


def report_from_dict(item: dict) -> Report:
    return Report(
        recommendation=str(item.get("recommendation") or ""),
        overall_score=int(item.get("overall_score") or 0),
        executive_summary=str(item.get("executive_summary") or ""),
        skill_assessments=tuple(
            SkillRating(skill=str(s.get("skill") or ""), rating=int(s.get("rating") or 0), verdict=str(s.get("verdict") or ""))
            for s in item.get("skill_assessments") or ()
            if isinstance(s, dict)
        ),
        strengths=tuple(item.get("strengths") or ()),
        areas_to_improve=tuple(item.get("areas_to_improve") or ()),
        topics_covered=tuple(item.get("topics_covered") or ()),
        topics_missed=tuple(item.get("topics_missed") or ()),
    )
