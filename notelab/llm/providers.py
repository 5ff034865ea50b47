"""
Backend provider selection and credentials.

Exactly one provider is active per call. Settings are read from the
environment at call time so a .env loaded after import is still honored.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

from notelab.infrastructure import settings
from notelab.llm.errors import InvalidURLError, MissingCredentialError


class AIProvider(str, Enum):
    """Supported text-generation backends."""

    GEMINI = "gemini"
    DEEPSEEK = "deepseek"

    @property
    def display_name(self) -> str:
        return "Google Gemini" if self is AIProvider.GEMINI else "DeepSeek"

    @classmethod
    def parse(cls, value: str | None) -> AIProvider:
        """Parse a provider id, defaulting to Gemini for blank or unknown values."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.GEMINI


@dataclass(frozen=True)
class AISettings:
    """Active provider plus the credentials and models for both providers."""

    provider: AIProvider = AIProvider.GEMINI
    gemini_api_key: str = ""
    deepseek_api_key: str = ""
    gemini_model: str = settings.GEMINI_MODEL
    deepseek_model: str = settings.DEEPSEEK_MODEL
    deepseek_base_url: str = settings.DEEPSEEK_BASE_URL

    @classmethod
    def from_env(cls) -> AISettings:
        return cls(
            provider=AIProvider.parse(os.getenv("NOTELAB_AI_PROVIDER", settings.AI_PROVIDER)),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or settings.GEMINI_API_KEY,
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY") or settings.DEEPSEEK_API_KEY,
            gemini_model=os.getenv("GEMINI_MODEL") or settings.GEMINI_MODEL,
            deepseek_model=os.getenv("DEEPSEEK_MODEL") or settings.DEEPSEEK_MODEL,
            deepseek_base_url=os.getenv("DEEPSEEK_BASE_URL") or settings.DEEPSEEK_BASE_URL,
        )

    @property
    def current_api_key(self) -> str:
        key = self.gemini_api_key if self.provider is AIProvider.GEMINI else self.deepseek_api_key
        return (key or "").strip()

    @property
    def model_name(self) -> str:
        return self.gemini_model if self.provider is AIProvider.GEMINI else self.deepseek_model

    @property
    def is_configured(self) -> bool:
        return bool(self.current_api_key)

    def require_api_key(self) -> str:
        """Return the trimmed key for the active provider.

        Raises:
            MissingCredentialError: If the key is blank.
        """
        key = self.current_api_key
        if not key:
            raise MissingCredentialError()
        return key


def validate_base_url(url: str) -> str:
    """Return the URL without a trailing slash.

    Raises:
        InvalidURLError: If the URL has no http(s) scheme or no host.
    """
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url)
    return parsed.geturl().rstrip("/")
