from pydantic import BaseModel, EmailStr, Field

from models.schemas.skills import ProposedSkill, SkillLevel


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Skill name, any casing")
    category: str = Field("General", max_length=100)
    level: SkillLevel = "beginner"


class ReconcileRequest(BaseModel):
    """Skills the user confirmed (and possibly edited) in the review step."""
    skills: list[ProposedSkill] = Field(..., max_length=100)
