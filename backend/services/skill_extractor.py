"""Best-effort skill suggestions for a certification, via Gemini."""

import logging

from pydantic import BaseModel, ValidationError

from config import settings
from models.schemas.certificate_analysis import AnalysisResult
from models.schemas.skills import ProposedSkill, SkillExtraction
from services import prompt_builder
from services.structured_response import Generate, get_structured_response

logger = logging.getLogger(__name__)


class CertificateData(BaseModel):
    title: str
    issuer: str
    description: str | None = None
    ai_analysis: AnalysisResult | None = None


def parse_skills(data: dict, min_confidence: float) -> list[ProposedSkill]:
    """Keep well-formed proposals with confidence above the cutoff.

    Malformed entries are skipped one by one; the model's own filtering
    is not trusted.
    """
    raw_skills = data.get("skills")
    if not isinstance(raw_skills, list):
        raise ValueError("Response has no 'skills' array")

    skills: list[ProposedSkill] = []
    seen: set[str] = set()
    for entry in raw_skills:
        # A missing confidence would fall back to the 1.0 default meant for
        # user-confirmed skills
        confidence = entry.get("confidence") if isinstance(entry, dict) else None
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            logger.warning("Skipping skill entry without numeric confidence: %r", entry)
            continue
        try:
            skill = ProposedSkill.model_validate(entry)
        except ValidationError as e:
            logger.warning("Skipping malformed skill entry %r: %s", entry, e.errors()[0]["msg"])
            continue
        key = skill.name.lower()
        if not key or key in seen or skill.confidence <= min_confidence:
            continue
        seen.add(key)
        skills.append(skill)
    return skills


async def extract_skills_from_certificate(
    cert_data: CertificateData | dict,
    min_confidence: float | None = None,
    *,
    generate: Generate | None = None,
) -> SkillExtraction:
    """Ask Gemini for explicit and implicit skills. Never raises.

    Any failure is logged and returned as `SkillExtraction(skills=[], error=...)`.
    """
    if min_confidence is None:
        min_confidence = settings.skill_confidence_threshold

    try:
        if isinstance(cert_data, dict):
            cert_data = CertificateData.model_validate(cert_data)
        prompt = prompt_builder.build_skill_prompt(
            cert_data.title,
            cert_data.issuer,
            cert_data.description,
            cert_data.ai_analysis.suggested_skills if cert_data.ai_analysis else None,
            min_confidence=min_confidence,
        )
        data = await get_structured_response(prompt, generate=generate)
        skills = parse_skills(data, min_confidence)
    except Exception as e:
        logger.warning("Skill extraction failed, continuing without suggestions: %s", e)
        return SkillExtraction(skills=[], error=str(e) or type(e).__name__)

    logger.info("Extracted %d skills above confidence %.2f", len(skills), min_confidence)
    return SkillExtraction(skills=skills)
