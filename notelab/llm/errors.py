"""
Error taxonomy for AI backend calls.

Every error carries a localized, user-presentable message. The locale comes
from NOTELAB_LOCALE ("en" or "zh-CN") unless a caller passes one explicitly
to `localized_message`.
"""

from __future__ import annotations

from notelab.config import LOCALE

_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "invalid_url": "Invalid request URL",
        "missing_credential": "Configure an API key in settings first",
        "bad_response": "Request failed ({status})",
        "bad_response_detail": "Request failed ({status}): {message}",
        "decoding_failed": "Could not parse the AI response",
        "empty_response": "The AI returned an empty response",
    },
    "zh-CN": {
        "invalid_url": "无效的请求地址",
        "missing_credential": "请先在设置中配置 API Key",
        "bad_response": "请求失败 ({status})",
        "bad_response_detail": "请求失败 ({status})：{message}",
        "decoding_failed": "解析失败",
        "empty_response": "AI 返回空响应",
    },
}


def _catalog(locale: str | None) -> dict[str, str]:
    return _MESSAGES.get(locale or LOCALE, _MESSAGES["en"])


class AIClientError(Exception):
    """Base class for errors raised by AI intents."""

    key = "decoding_failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(self.localized_message())

    def localized_message(self, locale: str | None = None) -> str:
        return _catalog(locale)[self.key]


class InvalidURLError(AIClientError):
    """Raised when the configured backend endpoint is not a valid URL."""

    key = "invalid_url"


class MissingCredentialError(AIClientError):
    """Raised when the selected provider has no API key."""

    key = "missing_credential"


class BadResponseError(AIClientError):
    """Raised on a non-success status from the backend. Never retried."""

    key = "bad_response"

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    def localized_message(self, locale: str | None = None) -> str:
        catalog = _catalog(locale)
        if self.message:
            return catalog["bad_response_detail"].format(status=self.status_code, message=self.message)
        return catalog["bad_response"].format(status=self.status_code)


class DecodingFailedError(AIClientError):
    """Raised when a response matches neither the full nor the partial shape."""

    key = "decoding_failed"


class EmptyResponseError(AIClientError):
    """Raised when the backend returned no usable text."""

    key = "empty_response"
