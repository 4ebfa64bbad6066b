from __future__ import annotations

import logging
from typing import Sequence

from interview_agent.ai.llm import CompletionClient
from interview_agent.ai.parsing import parse_completion
from interview_agent.ai.prompts import build_question_bank_request, build_skill_extraction_request
from interview_agent.ai.schemas import QuestionBankResponse, SkillExtraction
from interview_agent.session.models import QuestionSet, Skill

logger = logging.getLogger("interview_agent.setup.pipeline")


class SetupPipeline:
    """Resume text -> skills -> per-skill question bank. Two sequential completion calls, no retry."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def extract_skills(self, resume_text: str) -> list[Skill]:
        raw = await self.client.complete(build_skill_extraction_request(resume_text))
        parsed = parse_completion(raw, SkillExtraction)

        skills: list[Skill] = []
        seen: set[str] = set()
        for item in parsed.skills:
            name = item.name.strip()
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            skills.append(
                Skill(
                    name=name,
                    category=item.category,
                    proficiency_signal=item.proficiency_signal,
                    years_of_experience=item.years_of_experience,
                )
            )
        logger.info("Skills extracted | count=%s", len(skills))
        return skills

    async def generate_question_bank(self, skills: Sequence[Skill]) -> dict[str, QuestionSet]:
        if not skills:
            return {}

        raw = await self.client.complete(build_question_bank_request(skills))
        parsed = parse_completion(raw, QuestionBankResponse)

        bank = {
            name: QuestionSet(basic=questions.basic, intermediate=questions.intermediate, advanced=questions.advanced)
            for name, questions in parsed.question_bank.items()
        }
        logger.info("Question bank generated | skills=%s", len(bank))
        return bank
