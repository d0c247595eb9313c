"""Tests for best-effort skill extraction."""

import json

import pytest

from models.schemas.certificate_analysis import AnalysisResult
from services.skill_extractor import extract_skills_from_certificate, parse_skills

CERT = {"title": "AWS Certified Solutions Architect", "issuer": "Amazon Web Services"}


@pytest.mark.asyncio
async def test_returns_skills_above_cutoff(scripted, fake_gemini):
    completion = scripted(json.dumps(fake_gemini.skills))
    result = await extract_skills_from_certificate(CERT, generate=completion)

    assert result.ok
    names = [s.name for s in result.skills]
    assert names == ["AWS", "Cloud Architecture"]  # Networking (0.5) dropped
    assert result.skills[0].level == "intermediate"


@pytest.mark.asyncio
async def test_cutoff_is_exclusive_and_configurable(scripted):
    payload = {"skills": [
        {"name": "Terraform", "confidence": 0.7},
        {"name": "IAM", "confidence": 0.71},
    ]}
    result = await extract_skills_from_certificate(
        CERT, min_confidence=0.7, generate=scripted(json.dumps(payload))
    )
    assert [s.name for s in result.skills] == ["IAM"]

    result = await extract_skills_from_certificate(
        CERT, min_confidence=0.5, generate=scripted(json.dumps(payload))
    )
    assert len(result.skills) == 2


@pytest.mark.asyncio
async def test_non_json_answer_returns_empty_with_error(scripted):
    completion = scripted("Sorry, I can't help with that.")
    result = await extract_skills_from_certificate(CERT, generate=completion)
    assert result.skills == []
    assert result.error
    assert not result.ok
    assert completion.calls == 2


@pytest.mark.asyncio
async def test_model_error_returns_empty(scripted):
    result = await extract_skills_from_certificate(
        CERT, generate=scripted(RuntimeError("quota exceeded"))
    )
    assert result.skills == []
    assert result.error


@pytest.mark.asyncio
async def test_missing_skills_key_returns_empty(scripted):
    result = await extract_skills_from_certificate(CERT, generate=scripted('{"result": []}'))
    assert result.skills == []
    assert "skills" in result.error


@pytest.mark.asyncio
async def test_bad_cert_data_returns_empty(scripted):
    completion = scripted("{}")
    result = await extract_skills_from_certificate({"issuer": "No title"}, generate=completion)
    assert result.skills == []
    assert result.error
    assert completion.calls == 0


@pytest.mark.asyncio
async def test_prompt_includes_description_and_suggestions(scripted):
    completion = scripted('{"skills": []}')
    analysis = AnalysisResult(
        extracted_info={}, validation={}, suggested_skills=["EC2", "S3"], category="Cloud"
    )
    await extract_skills_from_certificate(
        {**CERT, "description": "Designing distributed systems on AWS", "ai_analysis": analysis},
        generate=completion,
    )
    prompt = completion.prompts[0]
    assert "Designing distributed systems on AWS" in prompt
    assert "EC2, S3" in prompt
    assert "confidence > 0.7" in prompt


def test_parse_skills_skips_malformed_entries():
    data = {"skills": [
        {"name": "Python", "confidence": 0.9},
        {"level": "advanced", "confidence": 0.9},  # no name
        {"name": "Go", "confidence": 1.7},  # out of range
        "just a string",
        {"name": "SQL", "level": "Expert", "category": "", "confidence": 0.8},
    ]}
    skills = parse_skills(data, 0.7)
    assert [s.name for s in skills] == ["Python", "SQL"]
    assert skills[1].level == "beginner"
    assert skills[1].category == "General"


def test_parse_skills_dedupes_by_name():
    data = {"skills": [
        {"name": "Python", "confidence": 0.9},
        {"name": "python ", "confidence": 0.95},
    ]}
    assert len(parse_skills(data, 0.7)) == 1


@pytest.mark.asyncio
async def test_entry_without_confidence_is_dropped(scripted):
    payload = {"skills": [
        {"name": "Guesswork", "level": "beginner", "category": "X"},
        {"name": "Hunch", "confidence": None},
        {"name": "Flag", "confidence": True},
        {"name": "Lambda", "confidence": 0.9},
    ]}
    result = await extract_skills_from_certificate(CERT, generate=scripted(json.dumps(payload)))
    assert result.ok
    assert [(s.name, s.confidence) for s in result.skills] == [("Lambda", 0.9)]
