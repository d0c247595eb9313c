"""Certificate submission pipeline.

Flow:
    upload bytes + user metadata
      ├─ analyze_certificate()       → AnalysisResult          (hard-fail)
      ├─ validate_authenticity()     → AuthenticityAssessment  (pure)
      ├─ threshold gate              → "rejected" outcome, nothing stored
      ├─ persist certification
      ├─ extract skills              → SkillExtraction         (soft-fail)
      └─ reconcile skills to user    → added SkillRecords      (soft-fail)

Analysis errors propagate to the caller. Skill errors are converted to
empty results at the stage boundary so they never block creation.
"""

import logging

from config import settings
from models.schemas.authenticity import AuthenticityAssessment
from models.schemas.certificate_analysis import AnalysisResult, UserSuppliedMetadata
from models.schemas.skills import ProposedSkill, SkillExtraction, SkillRecord
from models.schemas.submission import AnalysisPreview, SubmissionOutcome
from services.authenticity import is_authentic, validate_authenticity
from services.certificate_analyzer import analyze_certificate
from services.errors import NotFoundError
from services.repository import SqlRepository
from services.skill_extractor import CertificateData, extract_skills_from_certificate
from services.skill_reconciler import reconcile_skills_to_user
from services.structured_response import Generate

logger = logging.getLogger(__name__)


async def _analyze_stage(
    file_buffer: bytes,
    file_kind: str,
    metadata: UserSuppliedMetadata,
    generate: Generate | None,
) -> tuple[AnalysisResult, AuthenticityAssessment]:
    analysis = await analyze_certificate(file_buffer, file_kind, metadata, generate=generate)
    authenticity = validate_authenticity(analysis)
    logger.info(
        "Authenticity score %.1f (%s), flags=%s",
        authenticity.score,
        authenticity.confidence_level,
        authenticity.flags,
    )
    return analysis, authenticity


async def _skill_stage(
    metadata: UserSuppliedMetadata,
    analysis: AnalysisResult,
    description: str | None,
    generate: Generate | None,
) -> SkillExtraction:
    info = analysis.extracted_info
    return await extract_skills_from_certificate(
        CertificateData(
            title=info.title or metadata.title,
            issuer=info.issuer or metadata.issuer,
            description=description,
            ai_analysis=analysis,
        ),
        generate=generate,
    )


async def _reconcile_stage(
    store: SqlRepository,
    user_id: int,
    skills: list[ProposedSkill],
) -> tuple[list[SkillRecord], str | None]:
    if not skills:
        return [], None
    try:
        return await reconcile_skills_to_user(store, user_id, skills), None
    except Exception as e:
        logger.warning("Skill reconciliation failed for user %d: %s", user_id, e)
        return [], str(e) or type(e).__name__


async def analyze_submission(
    file_buffer: bytes,
    file_kind: str,
    metadata: UserSuppliedMetadata,
    *,
    description: str | None = None,
    authenticity_threshold: float | None = None,
    generate: Generate | None = None,
) -> AnalysisPreview:
    """Run analysis, scoring and skill suggestion without persisting."""
    if authenticity_threshold is None:
        authenticity_threshold = settings.authenticity_threshold

    analysis, authenticity = await _analyze_stage(file_buffer, file_kind, metadata, generate)
    passes = is_authentic(authenticity, authenticity_threshold)

    extraction = SkillExtraction()
    if passes:
        extraction = await _skill_stage(metadata, analysis, description, generate)

    return AnalysisPreview(
        analysis=analysis,
        authenticity=authenticity,
        passes_threshold=passes,
        proposed_skills=extraction.skills,
        skill_error=extraction.error,
    )


async def submit_certification(
    store: SqlRepository,
    user_id: int,
    file_buffer: bytes,
    file_kind: str,
    metadata: UserSuppliedMetadata,
    *,
    description: str | None = None,
    credential_url: str | None = None,
    file_name: str | None = None,
    authenticity_threshold: float | None = None,
    generate: Generate | None = None,
) -> SubmissionOutcome:
    """Run the full pipeline for one upload and persist it if it passes."""
    if authenticity_threshold is None:
        authenticity_threshold = settings.authenticity_threshold

    if await store.get_user(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")

    analysis, authenticity = await _analyze_stage(file_buffer, file_kind, metadata, generate)

    if not is_authentic(authenticity, authenticity_threshold):
        logger.info(
            "Submission rejected for user %d: score %.1f below threshold %.2f",
            user_id,
            authenticity.score,
            authenticity_threshold,
        )
        return SubmissionOutcome(status="rejected", analysis=analysis, authenticity=authenticity)

    certification = await store.add_certification(
        user_id,
        title=metadata.title,
        issuer=metadata.issuer,
        issue_date=metadata.issue_date,
        credential_id=metadata.credential_id,
        credential_url=credential_url,
        description=description,
        file_name=file_name,
        status="approved",
        ai_analysis=analysis.model_dump(),
        authenticity=authenticity.model_dump(),
    )
    logger.info("Certification %d created for user %d", certification.id, user_id)

    extraction = await _skill_stage(metadata, analysis, description, generate)
    added, reconcile_error = await _reconcile_stage(store, user_id, extraction.skills)

    return SubmissionOutcome(
        status="accepted",
        analysis=analysis,
        authenticity=authenticity,
        certification_id=certification.id,
        proposed_skills=extraction.skills,
        skills_added=added,
        skill_error=extraction.error or reconcile_error,
    )
