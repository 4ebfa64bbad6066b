from __future__ import annotations

import logging

from interview_agent.ai.llm import CompletionClient
from interview_agent.ai.parsing import parse_completion
from interview_agent.ai.prompts import build_report_request
from interview_agent.ai.schemas import ReportResult
from interview_agent.session.models import Report, Session, SkillRating

logger = logging.getLogger("interview_agent.report.synthesizer")


def compute_coverage(session: Session) -> tuple[list[str], list[str]]:
    """
    Covered topics: distinct timeline topics in order, then any assessed topic
    not already seen ("General" is not a skill). Missed: skills never covered.
    """
    covered: list[str] = []
    for topic in [shift.topic for shift in session.topic_timeline] + [item.topic for item in session.assessments]:
        if topic and topic != "General" and topic not in covered:
            covered.append(topic)

    missed = [skill.name for skill in session.skills if skill.name not in covered]
    return covered, missed


def duration_minutes(session: Session) -> int:
    if not session.started_at or not session.ended_at:
        return 0
    return max(0, round((float(session.ended_at) - float(session.started_at)) / 60.0))


class ReportSynthesizer:
    def __init__(self, client: CompletionClient):
        self.client = client

    async def synthesize(self, session: Session) -> Report:
        covered, missed = compute_coverage(session)
        request = build_report_request(
            candidate_name=session.candidate_name,
            duration_minutes=duration_minutes(session),
            topics_covered=covered,
            topics_missed=missed,
            assessments=list(session.assessments),
        )
        raw = await self.client.complete(request)
        result = parse_completion(raw, ReportResult)

        logger.info(
            "Report synthesized | recommendation=%s overall=%s covered=%s missed=%s",
            result.recommendation,
            result.overall_score,
            len(covered),
            len(missed),
        )
        # Coverage comes from the session, not from the model's echo of it.
        return Report(
            recommendation=result.recommendation,
            overall_score=result.overall_score,
            executive_summary=result.executive_summary,
            skill_assessments=tuple(
                SkillRating(skill=item.skill, rating=item.rating, verdict=item.verdict)
                for item in result.skill_assessments
            ),
            strengths=tuple(result.strengths),
            areas_to_improve=tuple(result.areas_to_improve),
            topics_covered=tuple(covered),
            topics_missed=tuple(missed),
        )
