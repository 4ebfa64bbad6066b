from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CompletionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExtractedSkill(_CompletionModel):
    name: str = Field(min_length=1)
    category: str = "concept"
    years_of_experience: Optional[float] = Field(default=None, alias="yearsOfExperience")
    proficiency_signal: str = Field(default="mentioned", alias="proficiencySignal")


class SkillExtraction(_CompletionModel):
    skills: list[ExtractedSkill]


class GeneratedQuestions(_CompletionModel):
    basic: str
    intermediate: str
    advanced: str


class QuestionBankResponse(_CompletionModel):
    question_bank: dict[str, GeneratedQuestions] = Field(alias="questionBank")


class FollowUp(_CompletionModel):
    question: str
    rationale: str = ""


class AssessmentResult(_CompletionModel):
    score: int = Field(ge=1, le=5)
    verdict: Literal["strong", "adequate", "weak", "off-topic"]
    summary: str = ""
    key_strengths: list[str] = Field(default_factory=list, alias="keyStrengths")
    key_gaps: list[str] = Field(default_factory=list, alias="keyGaps")
    follow_up_questions: list[FollowUp] = Field(default_factory=list, alias="followUpQuestions")


class SkillAssessment(_CompletionModel):
    skill: str
    rating: int = Field(ge=1, le=5)
    verdict: Literal["strength", "adequate", "gap"]


class ReportResult(_CompletionModel):
    recommendation: Literal["strong_hire", "hire", "no_hire", "strong_no_hire"]
    overall_score: int = Field(ge=1, le=10, alias="overallScore")
    executive_summary: str = Field(default="", alias="executiveSummary")
    skill_assessments: list[SkillAssessment] = Field(default_factory=list, alias="skillAssessments")
    strengths: list[str] = Field(default_factory=list)
    areas_to_improve: list[str] = Field(default_factory=list, alias="areasToImprove")
    topics_covered: list[str] = Field(default_factory=list, alias="topicsCovered")
    topics_missed: list[str] = Field(default_factory=list, alias="topicsMissed")
