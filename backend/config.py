import os
from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    max_upload_size_mb: int = 5
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    debug: bool = False

    # Database - SQLite locally, PostgreSQL (asyncpg) in production
    database_url: str = "sqlite+aiosqlite:///./certtrack.db"

    # Certificate analysis pipeline
    ai_timeout_seconds: float = 30.0  # per completion call
    ai_max_attempts: int = 2  # JSON extraction attempts per prompt
    image_max_dimension: int = 1024
    skill_confidence_threshold: float = 0.7  # proposals at or below are dropped
    authenticity_threshold: float = 0.5  # submissions scoring below are rejected

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
