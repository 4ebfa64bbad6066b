from __future__ import annotations

from typing import Optional, Sequence

from interview_agent.ai.llm import CompletionRequest
from interview_agent.rules import (
    ANSWER_PREFIX_CHARS,
    ASSESSMENT_MAX_TOKENS,
    QUESTIONS_MAX_TOKENS,
    REPORT_MAX_TOKENS,
    RESUME_PREFIX_CHARS,
    SKILLS_MAX_TOKENS,
)
from interview_agent.session.models import Assessment, Skill


def build_skill_extraction_request(resume_text: str) -> CompletionRequest:
    return CompletionRequest(
        system_instruction=(
            "You are a technical recruiter AI. Extract skills from resumes. "
            "Always return valid JSON only, no explanation."
        ),
        user_prompt=f"""Extract the candidate's skills from this resume.

Return JSON with this structure:
{{
  "skills": [
    {{
      "name": "skill name",
      "category": "language|framework|tool|concept|soft",
      "yearsOfExperience": null,
      "proficiencySignal": "expert|proficient|familiar|mentioned"
    }}
  ]
}}

Resume text:
{str(resume_text or "")[:RESUME_PREFIX_CHARS]}

Return ONLY the JSON object.""",
        max_output_tokens=SKILLS_MAX_TOKENS,
    )


def build_question_bank_request(skills: Sequence[Skill]) -> CompletionRequest:
    skill_list = "\n".join(f"- {skill.name} ({skill.proficiency_signal})" for skill in skills)
    return CompletionRequest(
        system_instruction=(
            "You are a senior technical interviewer. Generate targeted interview questions. "
            "Return valid JSON only."
        ),
        user_prompt=f"""Generate 3 interview questions per skill (basic, intermediate, advanced).

Skills:
{skill_list}

Return JSON:
{{
  "questionBank": {{
    "<skill_name>": {{
      "basic": "question text",
      "intermediate": "question text",
      "advanced": "question text"
    }}
  }}
}}

Return ONLY the JSON object.""",
        max_output_tokens=QUESTIONS_MAX_TOKENS,
    )


def build_assessment_request(question: str, answer: str, topic: Optional[str]) -> CompletionRequest:
    return CompletionRequest(
        system_instruction=(
            "You are evaluating a live technical interview. Be concise and actionable. "
            "Return valid JSON only."
        ),
        user_prompt=f"""Topic/Skill: {topic or "General"}
Question asked: "{question}"
Candidate answered: "{str(answer or "")[:ANSWER_PREFIX_CHARS]}"

Assess the answer and suggest follow-ups. Return JSON:
{{
  "score": 3,
  "verdict": "adequate",
  "summary": "2 sentence assessment of this answer",
  "keyStrengths": ["strength 1"],
  "keyGaps": ["gap 1"],
  "followUpQuestions": [
    {{ "question": "follow up question", "rationale": "why ask this" }}
  ]
}}

score: 1(poor) to 5(excellent)
verdict: strong | adequate | weak | off-topic

Return ONLY the JSON object.""",
        max_output_tokens=ASSESSMENT_MAX_TOKENS,
    )


def format_assessment_digest(assessments: Sequence[Assessment]) -> str:
    blocks = []
    for index, item in enumerate(assessments, start=1):
        gaps = ", ".join(item.key_gaps) or "none"
        blocks.append(
            f"[{index}] Topic: {item.topic or 'General'}\n"
            f"Q: {item.question}\n"
            f"Score: {item.score}/5 ({item.verdict})\n"
            f"Gaps: {gaps}"
        )
    return "\n\n".join(blocks)


def build_report_request(
    candidate_name: str,
    duration_minutes: int,
    topics_covered: Sequence[str],
    topics_missed: Sequence[str],
    assessments: Sequence[Assessment],
) -> CompletionRequest:
    """
    Build the final hiring report request.
    This is called ONCE per interview (plus explicit retries).
    """
    digest = format_assessment_digest(assessments)
    return CompletionRequest(
        system_instruction=(
            "You are a senior hiring manager writing a post-interview assessment. "
            "Be fair, specific, evidence-based. Return valid JSON only."
        ),
        user_prompt=f"""Candidate: {candidate_name or "Unknown"}
Interview duration: {duration_minutes} minutes
Skills tested: {", ".join(topics_covered) or "General"}
Skills NOT covered: {", ".join(topics_missed) or "none"}

Answer assessments:
{digest or "No assessments recorded"}

Generate a final hiring report. Return JSON:
{{
  "recommendation": "hire",
  "overallScore": 7,
  "executiveSummary": "3-4 sentence summary of the candidate",
  "skillAssessments": [
    {{ "skill": "skill name", "rating": 4, "verdict": "strength" }}
  ],
  "strengths": ["strength 1", "strength 2"],
  "areasToImprove": ["area 1", "area 2"],
  "topicsCovered": ["topic 1"],
  "topicsMissed": ["topic 1"]
}}

recommendation: strong_hire | hire | no_hire | strong_no_hire
overallScore: 1-10
rating per skill: 1-5
verdict per skill: strength | adequate | gap

Return ONLY the JSON object.""",
        max_output_tokens=REPORT_MAX_TOKENS,
    )
