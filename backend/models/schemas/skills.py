"""Skill proposals from Gemini and skill catalog records."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

SkillLevel = Literal["beginner", "intermediate", "advanced"]
SKILL_LEVELS: tuple[str, ...] = ("beginner", "intermediate", "advanced")
MAX_CATEGORY_LENGTH = 100  # skills.category column width


class ProposedSkill(BaseModel):
    """A skill the model believes the certification demonstrates."""
    name: str
    level: SkillLevel = "beginner"
    category: str = "General"
    confidence: float = Field(1.0, ge=0.0, le=1.0)  # 1.0 only for user-confirmed skills

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        if isinstance(value, str) and value.strip().lower() in SKILL_LEVELS:
            return value.strip().lower()
        return "beginner"

    @field_validator("category", mode="before")
    @classmethod
    def _category_default(cls, value):
        if isinstance(value, str) and value.strip():
            return value.strip()[:MAX_CATEGORY_LENGTH].rstrip()
        return "General"


class SkillExtraction(BaseModel):
    """Best-effort extraction result.

    `error` is set instead of raising: skill suggestion must never block
    certificate creation.
    """
    skills: list[ProposedSkill] = []
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SkillRecord(BaseModel):
    """A row of the global skill catalog, keyed by normalized name."""
    id: int
    name: str
    category: str = "General"
    level: str = "beginner"
    description: str | None = None
    users_holding: list[int] = []
