"""
Gemini transport over the google-generativeai SDK.

Model instances are cached per (api key, model name) so repeated intents in
one pipeline run reuse the same client.
"""

from __future__ import annotations

from functools import lru_cache

from notelab.config import GEMINI_MAX_TOKENS, GEMINI_TEMPERATURE, LLM_LOG_PREVIEW_CHARS, LLM_TIMEOUT_SECONDS
from notelab.llm.errors import BadResponseError, EmptyResponseError
from notelab.observability.logging import get_logger, preview
from notelab.observability.telemetry import counter

logger = get_logger(__name__)


class GeminiInitializationError(RuntimeError):
    """Raised when Gemini model cannot be initialized."""


@lru_cache(maxsize=4)
def get_gemini_model(api_key: str, model_name: str):
    """
    Get or create a Gemini model bound to the given API key.

    Returns:
        GenerativeModel: Cached Gemini model

    Raises:
        GeminiInitializationError: If the SDK is missing or rejects the configuration
    """
    try:
        import google.generativeai as genai
    except ImportError as e:
        raise GeminiInitializationError(
            "google-generativeai is not installed. Install it or switch NOTELAB_AI_PROVIDER."
        ) from e

    try:
        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(model_name)
    except Exception as e:
        logger.error("Failed to initialize Gemini model: %s", e)
        raise GeminiInitializationError(f"Failed to initialize Gemini: {e}") from e

    logger.info("Initialized Gemini model (google-generativeai): model=%s", model_name)
    return model


def send_gemini_prompt(prompt: str, api_key: str, model_name: str) -> str:
    """Send one prompt to Gemini and return the first candidate's text.

    Raises:
        BadResponseError: On any API status failure (status code kept).
            SDK initialization failures map to status -1.
        EmptyResponseError: When the response carries no text.
    """
    try:
        model = get_gemini_model(api_key, model_name)
    except GeminiInitializationError as e:
        counter("ai.transport.gemini.init_error")
        raise BadResponseError(-1, str(e)) from e

    from google.api_core.exceptions import GoogleAPICallError

    generation_config = {
        "temperature": GEMINI_TEMPERATURE,
        "max_output_tokens": GEMINI_MAX_TOKENS,
    }

    try:
        response = model.generate_content(
            prompt,
            generation_config=generation_config,
            request_options={"timeout": LLM_TIMEOUT_SECONDS},
        )
    except GoogleAPICallError as e:
        status = e.code if isinstance(e.code, int) else -1
        counter("ai.transport.gemini.bad_response")
        logger.error("Gemini request failed status=%s message=%s", status, e.message)
        raise BadResponseError(status, e.message) from e

    try:
        text = response.text
    except ValueError as e:
        # No candidate parts, e.g. a blocked prompt
        counter("ai.transport.gemini.empty")
        logger.error("Gemini response parse failed body=%s", preview(str(response), LLM_LOG_PREVIEW_CHARS))
        raise EmptyResponseError() from e

    if not text:
        counter("ai.transport.gemini.empty")
        raise EmptyResponseError()

    logger.info("Gemini request success chars=%d", len(text))
    return text


def clear_model_cache() -> None:
    """
    Clear the cached model instances.

    Useful for testing or after rotating the API key.
    """
    get_gemini_model.cache_clear()
    logger.info("Cleared Gemini model cache")
