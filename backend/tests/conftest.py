"""Shared test configuration, fixtures and a scripted Gemini stand-in."""

import copy
import io
import json

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import models.tables  # noqa: F401  (registers tables on Base.metadata)
from database import Base, enable_sqlite_savepoints
from services.repository import SqlRepository


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: calls the real Gemini API (needs GEMINI_API_KEY)"
    )


# ---------------------------------------------------------------------------
# Fake completion source
# ---------------------------------------------------------------------------

ANALYSIS_JSON = {
    "extracted_info": {
        "title": "AWS Certified Solutions Architect",
        "issuer": "Amazon Web Services",
        "issue_date": "2024-01-01",
        "credential_id": "AWS-123",
    },
    "validation": {"matches": ["title", "issuer"], "discrepancies": []},
    "suggested_skills": ["AWS", "Cloud Architecture"],
    "category": "Cloud",
}

SKILLS_JSON = {
    "skills": [
        {"name": "AWS", "level": "intermediate", "category": "Cloud", "confidence": 0.95},
        {"name": "Cloud Architecture", "level": "advanced", "category": "Cloud", "confidence": 0.85},
        {"name": "Networking", "level": "beginner", "category": "Infrastructure", "confidence": 0.5},
    ]
}


class ScriptedCompletion:
    """Async callable standing in for gemini_client.generate_text.

    Returns `responses` in order (repeating the last one) and records
    every prompt it receives.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        response = self.responses[min(len(self.prompts), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


class FakeGemini:
    """Answers analysis prompts and skill prompts with different payloads."""

    def __init__(self, analysis=ANALYSIS_JSON, skills=SKILLS_JSON):
        self.analysis = analysis
        self.skills = skills
        self.analysis_calls = 0
        self.skill_calls = 0

    @staticmethod
    def _render(payload):
        if isinstance(payload, Exception):
            raise payload
        return payload if isinstance(payload, str) else json.dumps(payload)

    async def __call__(self, prompt):
        text = prompt if isinstance(prompt, str) else prompt[0]
        if "certificate analyzer AI" in text:
            self.analysis_calls += 1
            return self._render(self.analysis)
        self.skill_calls += 1
        return self._render(self.skills)


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def gemini():
    """Factory for FakeGemini instances with custom payloads."""
    return FakeGemini


@pytest.fixture
def scripted():
    """Factory for ScriptedCompletion instances."""
    return ScriptedCompletion


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(ANALYSIS_JSON)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@pytest.fixture
def make_image():
    def _make(width=200, height=100, fmt="PNG", mode="RGB"):
        buf = io.BytesIO()
        Image.new(mode, (width, height), color="white").save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def make_pdf():
    """Build a one-page PDF with `text` drawn in Helvetica (or no text)."""

    def _make(text: str | None = "AWS Certified Solutions Architect"):
        stream = f"BT /F1 18 Tf 72 720 Td ({text}) Tj ET".encode() if text else b""
        objects = [
            b"<< /Type /Catalog /Pages 2 0 R >>",
            b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
            b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
            b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        ]
        out = bytearray(b"%PDF-1.4\n")
        offsets = []
        for number, body in enumerate(objects, start=1):
            offsets.append(len(out))
            out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
        xref_at = len(out)
        out += b"xref\n0 %d\n" % (len(objects) + 1)
        out += b"0000000000 65535 f \n"
        for offset in offsets:
            out += b"%010d 00000 n \n" % offset
        out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
            len(objects) + 1,
            xref_at,
        )
        return bytes(out)

    return _make


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite with NullPool so every event loop opens its own connection."""
    db_file = tmp_path / "test.db"
    sync_engine = create_engine(f"sqlite:///{db_file}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return enable_sqlite_savepoints(
        create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)
    )


@pytest_asyncio.fixture
async def session(db_engine):
    maker = async_sessionmaker(db_engine, expire_on_commit=False)
    async with maker() as session:
        yield session


@pytest.fixture
def repo(session):
    return SqlRepository(session)


@pytest_asyncio.fixture
async def user(repo):
    return await repo.create_user("Ada Lovelace", "ada@example.com")
