"""Tests for JSON extraction from free-text completions and the retry bound."""

import asyncio
import time

import pytest

from services.errors import AIUnavailableError, ExtractionError
from services.structured_response import (
    ParsedJSON,
    ParseFailure,
    extract_json_object,
    get_structured_response,
)


def test_extract_pure_json():
    result = extract_json_object('{"a": 1, "b": [1, 2]}')
    assert result == ParsedJSON(data={"a": 1, "b": [1, 2]})


def test_extract_json_inside_prose():
    text = 'Sure! Here is the analysis: {"category": "Cloud"} Let me know if you need more.'
    result = extract_json_object(text)
    assert isinstance(result, ParsedJSON)
    assert result.data == {"category": "Cloud"}


def test_extract_json_inside_code_fence():
    text = '```json\n{\n  "skills": [{"name": "Python"}]\n}\n```'
    result = extract_json_object(text)
    assert isinstance(result, ParsedJSON)
    assert result.data["skills"][0]["name"] == "Python"


def test_extract_nested_object_returns_outermost():
    text = 'prefix {"outer": {"inner": {"deep": true}}} suffix'
    result = extract_json_object(text)
    assert result.data == {"outer": {"inner": {"deep": True}}}


def test_braces_inside_strings_are_ignored():
    text = 'Result: {"title": "Use {curly} braces", "note": "a \\"quoted\\" }"}'
    result = extract_json_object(text)
    assert isinstance(result, ParsedJSON)
    assert result.data["title"] == "Use {curly} braces"


def test_first_object_wins():
    result = extract_json_object('{"first": 1} and then {"second": 2}')
    assert result.data == {"first": 1}


def test_skips_invalid_candidate_and_uses_next():
    result = extract_json_object('{not json at all} {"valid": true}')
    assert result.data == {"valid": True}


def test_no_json_is_failure():
    result = extract_json_object("I cannot read this certificate.")
    assert isinstance(result, ParseFailure)
    assert result.raw_text == "I cannot read this certificate."


def test_unbalanced_json_is_failure():
    result = extract_json_object('{"title": "cut off')
    assert isinstance(result, ParseFailure)


def test_object_inside_unclosed_brace_is_found():
    result = extract_json_object('Note {unfinished thought, but {"category": "Cloud"} here')
    assert result == ParsedJSON(data={"category": "Cloud"})


def test_many_unclosed_braces_scan_in_linear_time():
    text = "{" * 50_000 + '{"ok": true}'
    started = time.perf_counter()
    result = extract_json_object(text)
    assert time.perf_counter() - started < 1.0
    assert result.data == {"ok": True}

    started = time.perf_counter()
    assert isinstance(extract_json_object("{" * 50_000), ParseFailure)
    assert time.perf_counter() - started < 1.0


def test_empty_text_is_failure():
    assert isinstance(extract_json_object(""), ParseFailure)
    assert isinstance(extract_json_object(None), ParseFailure)


# --- Retry behavior ---


@pytest.mark.asyncio
async def test_returns_on_first_valid_response(scripted):
    completion = scripted('{"ok": true}')
    data = await get_structured_response("prompt", max_attempts=2, generate=completion)
    assert data == {"ok": True}
    assert completion.calls == 1


@pytest.mark.asyncio
async def test_retries_after_non_json_then_succeeds(scripted):
    completion = scripted("no json here", 'Here: {"ok": true}')
    data = await get_structured_response("prompt", max_attempts=2, generate=completion)
    assert data == {"ok": True}
    assert completion.calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("max_attempts", [1, 2, 5])
async def test_fails_after_exactly_max_attempts(scripted, max_attempts):
    completion = scripted("I cannot read this certificate.")
    with pytest.raises(ExtractionError) as exc_info:
        await get_structured_response("prompt", max_attempts=max_attempts, generate=completion)
    assert completion.calls == max_attempts
    assert exc_info.value.raw_response == "I cannot read this certificate."
    assert exc_info.value.attempts == max_attempts


@pytest.mark.asyncio
async def test_call_errors_count_as_attempts(scripted):
    completion = scripted(RuntimeError("503 from upstream"), asyncio.TimeoutError())
    with pytest.raises(ExtractionError) as exc_info:
        await get_structured_response("prompt", max_attempts=2, generate=completion)
    assert completion.calls == 2
    assert exc_info.value.raw_response is None


@pytest.mark.asyncio
async def test_unconfigured_client_is_not_retried(scripted):
    completion = scripted(AIUnavailableError("no key"))
    with pytest.raises(AIUnavailableError):
        await get_structured_response("prompt", max_attempts=3, generate=completion)
    assert completion.calls == 1


@pytest.mark.asyncio
async def test_rejects_zero_attempts(scripted):
    with pytest.raises(ValueError):
        await get_structured_response("prompt", max_attempts=0, generate=scripted("{}"))
