from datetime import datetime

from pydantic import BaseModel, ConfigDict

from models.schemas.skills import SkillRecord


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class CertificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    issuer: str
    issue_date: str | None = None
    credential_id: str | None = None
    credential_url: str | None = None
    description: str | None = None
    file_name: str | None = None
    status: str = "pending"
    ai_analysis: dict | None = None
    authenticity: dict | None = None
    created_at: datetime | None = None


class ReconcileResponse(BaseModel):
    added: list[SkillRecord] = []  # newly attached by this call
    skills: list[SkillRecord] = []  # the user's full skill set afterwards


class SkillRemovalResponse(BaseModel):
    success: bool = True
    message: str = "Skill successfully removed"
    skill_id: int
    skill_deleted: bool = False  # catalog row garbage-collected


class DeletionResponse(BaseModel):
    success: bool = True
    message: str
