"""Certificate Analyzer: preprocess, prompt Gemini, shape-check the answer."""

import logging

from pydantic import ValidationError

from models.schemas.certificate_analysis import AnalysisResult, UserSuppliedMetadata
from services import document_preprocessor, prompt_builder
from services.document_preprocessor import DOCUMENT_KINDS
from services.errors import InvalidAIResponseError, InvalidInputError
from services.structured_response import Generate, get_structured_response

logger = logging.getLogger(__name__)


def _first_present(data: dict, *keys: str):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def check_shape(data: dict) -> AnalysisResult:
    """Require extracted_info, validation and a suggested_skills array."""
    extracted = _first_present(data, "extracted_info", "extractedInfo")
    validation = data.get("validation")
    skills = _first_present(data, "suggested_skills", "suggestedSkills")

    missing = []
    if not isinstance(extracted, dict):
        missing.append("extracted_info")
    if not isinstance(validation, dict):
        missing.append("validation")
    if not isinstance(skills, list):
        missing.append("suggested_skills")
    if missing:
        logger.error("Invalid result structure, missing: %s", ", ".join(missing))
        raise InvalidAIResponseError(
            f"AI returned invalid response structure (missing {', '.join(missing)})",
            payload=data,
        )

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise InvalidAIResponseError(f"AI returned malformed analysis: {e}", payload=data) from e


async def analyze_certificate(
    file_buffer: bytes | None,
    file_kind: str,
    user_metadata: UserSuppliedMetadata | dict,
    *,
    max_attempts: int | None = None,
    generate: Generate | None = None,
) -> AnalysisResult:
    """Read a certificate with Gemini and cross-check the uploader's claims.

    Raises InvalidInputError, PreprocessError, ExtractionError or
    InvalidAIResponseError. Nothing is persisted.
    """
    if not file_buffer:
        raise InvalidInputError("No file buffer provided")
    if file_kind not in DOCUMENT_KINDS:
        raise InvalidInputError(f"Invalid file type: {file_kind}")

    if isinstance(user_metadata, dict):
        user_metadata = UserSuppliedMetadata.model_validate(user_metadata)
    logger.info("Starting certificate analysis for file type: %s", file_kind)

    # Fails fast on unreadable files, before any Gemini call
    prepared = document_preprocessor.prepare(file_buffer, file_kind)

    metadata = user_metadata.model_dump(exclude_none=True)
    if prepared.kind == "pdf":
        prompt = prompt_builder.build_certificate_prompt(metadata, prepared.text)
    else:
        prompt = [prompt_builder.build_certificate_prompt(metadata), prepared.media]

    data = await get_structured_response(prompt, max_attempts=max_attempts, generate=generate)
    result = check_shape(data)
    logger.info(
        "Certificate analyzed: %d suggested skills, category=%r",
        len(result.suggested_skills),
        result.category,
    )
    return result
