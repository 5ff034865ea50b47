"""
DeepSeek transport over the OpenAI-compatible chat completions API.
"""

from __future__ import annotations

from functools import lru_cache

import openai

from notelab.config import DEEPSEEK_MAX_TOKENS, DEEPSEEK_TEMPERATURE, LLM_LOG_PREVIEW_CHARS, LLM_TIMEOUT_SECONDS
from notelab.llm.decoding import extract_error_message
from notelab.llm.errors import BadResponseError, EmptyResponseError
from notelab.llm.providers import validate_base_url
from notelab.observability.logging import get_logger, preview
from notelab.observability.telemetry import counter

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are the NoteLab assistant. Output valid JSON only, with no extra text or markdown.\n"
    "Follow the JSON structure in the user prompt exactly; do not add or remove fields or change the schema."
)


@lru_cache(maxsize=4)
def get_deepseek_client(api_key: str, base_url: str) -> openai.OpenAI:
    """Cached OpenAI client pointed at the DeepSeek endpoint. SDK retries are off."""
    return openai.OpenAI(
        api_key=api_key,
        base_url=validate_base_url(base_url),
        timeout=LLM_TIMEOUT_SECONDS,
        max_retries=0,
    )


def send_deepseek_prompt(prompt: str, api_key: str, model_name: str, base_url: str) -> str:
    """Send one prompt as a JSON-mode chat completion and return the message content.

    Raises:
        InvalidURLError: If the base URL is malformed.
        BadResponseError: On a non-2xx status, or -1 when the connection failed.
        EmptyResponseError: When the completion has no message content.
    """
    client = get_deepseek_client(api_key, base_url)

    try:
        completion = client.chat.completions.create(
            model=model_name,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=DEEPSEEK_TEMPERATURE,
            max_tokens=DEEPSEEK_MAX_TOKENS,
            response_format={"type": "json_object"},
        )
    except openai.APIStatusError as e:
        message = extract_error_message(e.response.text) or e.message
        counter("ai.transport.deepseek.bad_response")
        logger.error(
            "DeepSeek request failed status=%s body=%s",
            e.status_code,
            preview(e.response.text, LLM_LOG_PREVIEW_CHARS),
        )
        raise BadResponseError(e.status_code, message) from e
    except openai.APIConnectionError as e:
        counter("ai.transport.deepseek.connection_error")
        logger.error("DeepSeek connection failed: %s", e)
        raise BadResponseError(-1, str(e)) from e

    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        counter("ai.transport.deepseek.empty")
        logger.error("DeepSeek response parse failed")
        raise EmptyResponseError()

    logger.info("DeepSeek request success chars=%d", len(content))
    return content


def clear_client_cache() -> None:
    get_deepseek_client.cache_clear()
