"""Pipeline output for a single certificate submission."""

from typing import Literal

from pydantic import BaseModel

from models.schemas.authenticity import AuthenticityAssessment
from models.schemas.certificate_analysis import AnalysisResult
from models.schemas.skills import ProposedSkill, SkillRecord


class AnalysisPreview(BaseModel):
    """Analyze + score + suggest, without persisting anything.

    Skills are only suggested when the certificate passes the
    authenticity threshold.
    """
    analysis: AnalysisResult
    authenticity: AuthenticityAssessment
    passes_threshold: bool
    proposed_skills: list[ProposedSkill] = []
    skill_error: str | None = None


class SubmissionOutcome(BaseModel):
    """Result of the full submission pipeline.

    A rejected submission is a normal outcome: nothing is stored and the
    analysis is returned so the user can correct and resubmit.
    """
    status: Literal["accepted", "rejected"]
    analysis: AnalysisResult
    authenticity: AuthenticityAssessment
    certification_id: int | None = None
    proposed_skills: list[ProposedSkill] = []
    skills_added: list[SkillRecord] = []
    skill_error: str | None = None
