"""
JSON extraction helpers for backend responses.

Backends are told to answer with bare JSON but frequently wrap it in a
markdown code fence. Everything here is pure string/JSON handling so the
client can stay focused on the retry policy.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from notelab.llm.errors import DecodingFailedError

ModelT = TypeVar("ModelT", bound=BaseModel)


def clean_json_response(response: str) -> str:
    """Strip one leading ```json / ``` fence and one trailing ``` fence."""
    cleaned = response.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def try_decode(model: type[ModelT], text: str) -> ModelT | None:
    """Validate cleaned response text against a contract, or return None."""
    try:
        data = json.loads(clean_json_response(text))
    except (json.JSONDecodeError, TypeError):
        return None
    try:
        return model.model_validate(data)
    except ValidationError:
        return None


def decode(model: type[ModelT], text: str) -> ModelT:
    """Validate cleaned response text against a contract.

    Raises:
        DecodingFailedError: If the text is not JSON or does not match the contract.
    """
    result = try_decode(model, text)
    if result is None:
        raise DecodingFailedError()
    return result


def extract_json_object(text: str) -> str | None:
    """Return the outermost {...} span of a free-form answer, if any."""
    trimmed = text.strip()
    if trimmed.startswith("{"):
        return trimmed
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start != -1 and start < end:
        return trimmed[start : end + 1]
    return None


def extract_error_message(body: str | bytes | None) -> str | None:
    """Pull a human-readable message out of a vendor error body.

    Understands {"error": {"message": ...}} and {"message": ...}; otherwise
    falls back to the first 500 characters of the raw body.
    """
    if not body:
        return None
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return text[:500] if text else None
