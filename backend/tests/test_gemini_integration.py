"""Smoke tests against the real Gemini API.

Skipped unless GEMINI_API_KEY is configured. Deselect with `-m "not integration"`.
"""

import pytest

from config import settings
from services import gemini_client
from services.certificate_analyzer import analyze_certificate
from services.skill_extractor import extract_skills_from_certificate

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not settings.gemini_api_key, reason="GEMINI_API_KEY not set"),
]


@pytest.mark.asyncio
async def test_connection():
    assert await gemini_client.check_connection()


@pytest.mark.asyncio
async def test_real_pdf_analysis(make_pdf):
    result = await analyze_certificate(
        make_pdf("AWS Certified Solutions Architect - Associate. Issued by Amazon Web Services"),
        "pdf",
        {"title": "AWS Certified Solutions Architect", "issuer": "Amazon Web Services"},
    )
    assert isinstance(result.suggested_skills, list)
    assert result.validation is not None


@pytest.mark.asyncio
async def test_real_skill_extraction():
    result = await extract_skills_from_certificate(
        {"title": "AWS Certified Solutions Architect", "issuer": "Amazon Web Services"}
    )
    assert result.ok, result.error
    assert all(s.confidence > settings.skill_confidence_threshold for s in result.skills)
