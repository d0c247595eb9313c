import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.dependencies import get_repository
from config import settings
from models.requests import ReconcileRequest, SkillCreate, UserCreate
from models.responses import (
    CertificationResponse,
    DeletionResponse,
    ReconcileResponse,
    SkillRemovalResponse,
    UserResponse,
)
from models.schemas.certificate_analysis import UserSuppliedMetadata
from models.schemas.skills import ProposedSkill, SkillRecord
from models.schemas.submission import AnalysisPreview, SubmissionOutcome
from services import document_preprocessor, gemini_client
from services.errors import (
    AIUnavailableError,
    CertTrackError,
    ExtractionError,
    InvalidAIResponseError,
    InvalidInputError,
    NotFoundError,
    PreprocessError,
)
from services.pipeline import orchestrator
from services.repository import SqlRepository
from services.skill_reconciler import normalize_skill_name, reconcile_skills_to_user

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def _to_http(error: CertTrackError) -> HTTPException:
    """Map pipeline errors to HTTP errors without leaking raw model output."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (InvalidInputError, PreprocessError)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, AIUnavailableError):
        return HTTPException(status_code=503, detail="Certificate analysis is unavailable")
    if isinstance(error, ExtractionError):
        logger.error("Extraction failed after %d attempts; last response: %r",
                     error.attempts, error.raw_response)
        return HTTPException(status_code=502, detail="AI could not read the certificate")
    if isinstance(error, InvalidAIResponseError):
        logger.error("Invalid AI response: %s", error)
        return HTTPException(status_code=502, detail="AI returned an invalid analysis")
    return HTTPException(status_code=500, detail="Certificate processing failed")


async def _read_upload(certificate: UploadFile) -> tuple[bytes, str]:
    try:
        kind = document_preprocessor.detect_kind(certificate.filename, certificate.content_type)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    content = await certificate.read()
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Max size: {settings.max_upload_size_mb}MB",
        )
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return content, kind


async def _require_user(repo: SqlRepository, user_id: int):
    user = await repo.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "gemini_configured": bool(settings.gemini_api_key),
    }


@router.get("/health/ai")
async def health_ai():
    return {"gemini_ok": await gemini_client.check_connection()}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(body: UserCreate, repo: SqlRepository = Depends(get_repository)):
    try:
        return await repo.create_user(body.name, body.email)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, repo: SqlRepository = Depends(get_repository)):
    return await _require_user(repo, user_id)


# ---------------------------------------------------------------------------
# Certifications
# ---------------------------------------------------------------------------


@router.post("/certifications/analyze", response_model=AnalysisPreview)
@limiter.limit("10/minute")
async def analyze_certification(
    request: Request,
    certificate: UploadFile = File(...),
    title: str = Form(...),
    issuer: str = Form(...),
    issue_date: str | None = Form(None),
    credential_id: str | None = Form(None),
    description: str | None = Form(None),
):
    content, kind = await _read_upload(certificate)
    metadata = UserSuppliedMetadata(
        title=title, issuer=issuer, issue_date=issue_date, credential_id=credential_id
    )
    try:
        return await orchestrator.analyze_submission(
            content, kind, metadata, description=description
        )
    except CertTrackError as e:
        raise _to_http(e) from e


@router.post("/users/{user_id}/certifications", response_model=SubmissionOutcome, status_code=201)
@limiter.limit("10/minute")
async def submit_certification(
    request: Request,
    response: Response,
    user_id: int,
    certificate: UploadFile = File(...),
    title: str = Form(...),
    issuer: str = Form(...),
    issue_date: str = Form(...),
    credential_id: str | None = Form(None),
    credential_url: str | None = Form(None),
    description: str | None = Form(None),
    repo: SqlRepository = Depends(get_repository),
):
    if not title.strip() or not issuer.strip() or not issue_date.strip():
        raise HTTPException(status_code=400, detail="Please fill in all required fields")

    content, kind = await _read_upload(certificate)
    metadata = UserSuppliedMetadata(
        title=title.strip(),
        issuer=issuer.strip(),
        issue_date=issue_date.strip(),
        credential_id=credential_id,
    )
    try:
        outcome = await orchestrator.submit_certification(
            repo,
            user_id,
            content,
            kind,
            metadata,
            description=description,
            credential_url=credential_url,
            file_name=certificate.filename,
        )
    except CertTrackError as e:
        raise _to_http(e) from e

    if outcome.status == "rejected":
        response.status_code = 200
    return outcome


@router.get("/users/{user_id}/certifications", response_model=list[CertificationResponse])
async def list_certifications(user_id: int, repo: SqlRepository = Depends(get_repository)):
    await _require_user(repo, user_id)
    return await repo.list_certifications(user_id)


@router.delete("/users/{user_id}/certifications/{certification_id}", response_model=DeletionResponse)
async def delete_certification(
    user_id: int,
    certification_id: int,
    repo: SqlRepository = Depends(get_repository),
):
    certification = await repo.get_certification(certification_id)
    # Someone else's certification is indistinguishable from a missing one
    if certification is None or certification.user_id != user_id:
        raise HTTPException(status_code=404, detail="Certification not found")
    await repo.delete_certification(certification)
    return DeletionResponse(message="Certification removed successfully")


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/skills", response_model=list[SkillRecord])
async def list_skills(user_id: int, repo: SqlRepository = Depends(get_repository)):
    await _require_user(repo, user_id)
    return await repo.list_user_skills(user_id)


@router.post("/users/{user_id}/skills", response_model=SkillRecord, status_code=201)
async def add_skill(user_id: int, body: SkillCreate, repo: SqlRepository = Depends(get_repository)):
    proposal = ProposedSkill(name=body.name, category=body.category, level=body.level)
    try:
        await reconcile_skills_to_user(repo, user_id, [proposal])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    # Already-held skills are returned as they are
    skill = await repo.find_skill_by_name(normalize_skill_name(proposal.name))
    if skill is None:
        raise HTTPException(status_code=400, detail="Invalid skill name")
    return skill


@router.post("/users/{user_id}/skills/reconcile", response_model=ReconcileResponse)
async def reconcile_skills(
    user_id: int,
    body: ReconcileRequest,
    repo: SqlRepository = Depends(get_repository),
):
    try:
        added = await reconcile_skills_to_user(repo, user_id, body.skills)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ReconcileResponse(added=added, skills=await repo.list_user_skills(user_id))


@router.delete("/users/{user_id}/skills/{skill_id}", response_model=SkillRemovalResponse)
async def remove_skill(user_id: int, skill_id: int, repo: SqlRepository = Depends(get_repository)):
    await _require_user(repo, user_id)
    skill = await repo.get_skill(skill_id)
    if skill is None or user_id not in skill.users_holding:
        raise HTTPException(status_code=404, detail="Skill not found")

    removal = await repo.remove_holder(skill_id, user_id)
    return SkillRemovalResponse(skill_id=skill_id, skill_deleted=removal.skill_deleted)
