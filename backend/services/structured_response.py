"""Pull one JSON object out of a free-text Gemini completion, with retries.

Model output is untrusted: it may wrap the object in prose or Markdown
code fences, or contain no JSON at all. Parsing yields a tagged result
(`ParsedJSON` or `ParseFailure`) instead of letting json errors escape.
"""

import json
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass

from config import settings
from services import gemini_client
from services.errors import AIUnavailableError, ExtractionError

logger = logging.getLogger(__name__)

Generate = Callable[[gemini_client.PromptParts], Awaitable[str]]


@dataclass(frozen=True)
class ParsedJSON:
    data: dict


@dataclass(frozen=True)
class ParseFailure:
    raw_text: str
    reason: str


ParseResult = ParsedJSON | ParseFailure


def _balanced_objects(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) spans of outermost balanced {...} substrings.

    Single pass over `text` with a stack of open-brace offsets. Braces
    inside JSON string literals are not counted. When an opening brace
    never closes, the balanced objects nested inside it are still
    yielded, in order of their start offset.
    """
    stack: list[int] = []
    closed: list[tuple[int, int]] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and stack:
            in_string = True
        elif ch == "{":
            stack.append(i)
        elif ch == "}" and stack:
            closed.append((stack.pop(), i + 1))

    # Closed spans nest or are disjoint; keep those not inside an earlier one
    last_end = -1
    for start, end in sorted(closed):
        if start >= last_end:
            last_end = end
            yield start, end


def extract_json_object(text: str | None) -> ParseResult:
    """Parse the first balanced JSON object embedded in `text`."""
    if not text or not text.strip():
        return ParseFailure(raw_text=text or "", reason="Empty response")

    last_error = "No JSON object found in response"
    for start, end in _balanced_objects(text):
        candidate = text[start:end]
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = f"Invalid JSON at offset {start}: {e.msg}"
            continue
        if isinstance(data, dict):
            return ParsedJSON(data=data)
    return ParseFailure(raw_text=text, reason=last_error)


async def get_structured_response(
    prompt: gemini_client.PromptParts,
    max_attempts: int | None = None,
    generate: Generate | None = None,
) -> dict:
    """Send `prompt` and return the JSON object found in the completion.

    Makes at most `max_attempts` calls (immediately, no backoff). A call
    that raises counts as a failed attempt. Raises ExtractionError with
    the last raw completion once attempts are exhausted.
    """
    if max_attempts is None:
        max_attempts = settings.ai_max_attempts
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    generate = generate or gemini_client.generate_text

    last_raw: str | None = None
    for attempt in range(1, max_attempts + 1):
        logger.info("Attempt %d/%d to get valid JSON response", attempt, max_attempts)
        try:
            raw = await generate(prompt)
        except AIUnavailableError:
            raise
        except Exception as e:
            logger.error("Attempt %d failed: Gemini call error: %s", attempt, e)
            continue

        last_raw = raw
        result = extract_json_object(raw)
        if isinstance(result, ParsedJSON):
            return result.data
        logger.error("Attempt %d failed: %s", attempt, result.reason)
        logger.debug("Raw response: %s", raw)

    raise ExtractionError(
        f"No valid JSON found after {max_attempts} attempts",
        raw_response=last_raw,
        attempts=max_attempts,
    )
