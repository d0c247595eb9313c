"""Google Gemini API wrapper: text or text+image in, raw text out."""

import asyncio
import base64
import logging

from google import genai
from google.genai import types

from config import settings
from services.document_preprocessor import InlineMedia
from services.errors import AIUnavailableError

logger = logging.getLogger(__name__)

_client: genai.Client | None = None

# A prompt is a single string or an ordered list of text / inline media parts
PromptParts = str | list[str | InlineMedia]


def get_client() -> genai.Client | None:
    global _client
    if not settings.gemini_api_key:
        logger.warning("No GEMINI_API_KEY set - Gemini features disabled")
        return None
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


def _to_contents(prompt: PromptParts) -> list:
    if isinstance(prompt, str):
        return [prompt]
    contents = []
    for part in prompt:
        if isinstance(part, InlineMedia):
            contents.append(
                types.Part.from_bytes(data=base64.b64decode(part.data), mime_type=part.mime_type)
            )
        else:
            contents.append(part)
    return contents


async def generate_text(prompt: PromptParts) -> str:
    """Send a prompt to Gemini and return the raw completion text.

    The output is untrusted: it is not guaranteed to be JSON or even
    non-empty. Each call is bounded by `settings.ai_timeout_seconds`.
    """
    client = get_client()
    if client is None:
        raise AIUnavailableError("Gemini API not configured. Please set GEMINI_API_KEY.")

    response = await asyncio.wait_for(
        client.aio.models.generate_content(
            model=settings.gemini_model,
            contents=_to_contents(prompt),
            config=types.GenerateContentConfig(
                temperature=0.2,
                max_output_tokens=4096,
            ),
        ),
        timeout=settings.ai_timeout_seconds,
    )
    return response.text or ""


async def check_connection() -> bool:
    """Ask Gemini for a fixed token to verify the key and model work."""
    try:
        text = await generate_text('Return "OK" if you can read this message.')
    except Exception as e:
        logger.error("Gemini connection test failed: %s", e)
        return False
    logger.info("Gemini connection test response: %s", text.strip())
    return "OK" in text
