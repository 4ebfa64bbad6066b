from __future__ import annotations

import re
from typing import Optional, Sequence

from interview_agent.rules import MIN_TERM_LENGTH
from interview_agent.session.models import Skill

_TOKEN_SPLIT = re.compile(r"[\s/,]+")


def skill_terms(skill_name: str) -> list[str]:
    """
    Full lower-cased name plus its whitespace/slash/comma tokens, deduplicated in order.
    Terms shorter than MIN_TERM_LENGTH are dropped, including a short full name ("Go").
    """
    name = str(skill_name or "").strip().lower()
    terms: list[str] = []
    for term in [name, *_TOKEN_SPLIT.split(name)]:
        if len(term) >= MIN_TERM_LENGTH and term not in terms:
            terms.append(term)
    return terms


def score_skill(text: str, skill_name: str) -> int:
    lower = str(text or "").lower()
    return sum(1 for term in skill_terms(skill_name) if term in lower)


def detect_topic(text: str, skills: Sequence[Skill]) -> Optional[str]:
    """
    Lexical topic match. Deterministic; a later skill only wins with a strictly
    higher score, so ties go to the earlier skill. None means "no topic detected".
    """
    if not skills or not str(text or "").strip():
        return None

    best: Optional[str] = None
    best_score = 0
    for skill in skills:
        score = score_skill(text, skill.name)
        if score > best_score:
            best_score = score
            best = skill.name

    return best if best_score > 0 else None
