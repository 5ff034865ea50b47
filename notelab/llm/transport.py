"""Default send_prompt capability.

Routes a prompt to the configured provider. Transport failures are mapped to
the AIClientError taxonomy by the provider modules and are never retried
here; the only retry in the system is the client's schema retry.
"""

from __future__ import annotations

from notelab.llm.providers import AIProvider, AISettings
from notelab.observability.logging import get_logger
from notelab.observability.telemetry import counter, time_block

logger = get_logger(__name__)


def send_prompt(prompt: str, settings: AISettings | None = None) -> str:
    """Send a prompt through the active provider and return its raw text.

    Args:
        prompt: Fully rendered prompt.
        settings: Provider settings; read from the environment when omitted.

    Returns:
        The model's response text (possibly fenced JSON).

    Raises:
        MissingCredentialError: If the active provider has no API key.
        InvalidURLError: If the provider endpoint is malformed.
        BadResponseError: On HTTP/status failures.
        EmptyResponseError: When the provider returned no text.
    """
    settings = settings or AISettings.from_env()
    api_key = settings.require_api_key()
    provider = settings.provider

    logger.info("AI request using provider=%s model=%s", provider.value, settings.model_name)
    counter(f"ai.transport.{provider.value}.request")

    with time_block(f"ai.transport.{provider.value}.latency"):
        if provider is AIProvider.DEEPSEEK:
            from notelab.llm.deepseek import send_deepseek_prompt

            return send_deepseek_prompt(
                prompt,
                api_key=api_key,
                model_name=settings.deepseek_model,
                base_url=settings.deepseek_base_url,
            )

        from notelab.llm.gemini import send_gemini_prompt

        return send_gemini_prompt(prompt, api_key=api_key, model_name=settings.gemini_model)
