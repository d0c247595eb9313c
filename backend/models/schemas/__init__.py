"""Pydantic contracts shared by the certificate analysis pipeline stages."""

from models.schemas.certificate_analysis import (
    AnalysisResult,
    ExtractedInfo,
    UserSuppliedMetadata,
    ValidationResult,
)
from models.schemas.authenticity import AuthenticityAssessment
from models.schemas.skills import ProposedSkill, SkillExtraction, SkillRecord

__all__ = [
    "AnalysisResult",
    "ExtractedInfo",
    "UserSuppliedMetadata",
    "ValidationResult",
    "AuthenticityAssessment",
    "ProposedSkill",
    "SkillExtraction",
    "SkillRecord",
]
