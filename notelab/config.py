"""Centralized configuration for NoteLab.

Re-exports everything from notelab.infrastructure.settings, then adds typed
constants for the rewrite pipeline, highlight tiers, digest budgets and the
response cache. Environment variable overrides use safe defaults so the
pipeline runs without extra env configuration.
"""

from __future__ import annotations

import os

from notelab.infrastructure.settings import *  # noqa: F401, F403  re-export existing


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


# --- App ---
APP_VERSION: str = "0.1.0"

# --- LLM transport ---
LLM_TIMEOUT_SECONDS: int = int(_env("NOTELAB_LLM_TIMEOUT_SECONDS", "120"))
# Structured results that come back incomplete get exactly one more round trip
LLM_SCHEMA_ATTEMPTS: int = 2
LLM_LOG_PREVIEW_CHARS: int = int(_env("NOTELAB_LLM_LOG_PREVIEW_CHARS", "2048"))

# --- Prompt shaping ---
SHORT_TEXT_CHARS: int = 200
VERY_SHORT_TEXT_CHARS: int = 40

# --- Composed document headings ---
SUMMARY_HEADING: str = "Summary"
TASKS_HEADING: str = "Tasks"
BODY_HEADING: str = "Body"
ATTACHMENTS_HEADING: str = "Attachments"
HIGHLIGHTS_HEADING: str = "Highlights"
BODY_LABEL_MIN_CHARS: int = 120

# --- Highlight tiers: (max trimmed length, min highlights, max highlights) ---
HIGHLIGHT_TIERS: tuple[tuple[int, int, int], ...] = (
    (200, 0, 2),
    (800, 3, 5),
)
HIGHLIGHT_TIER_DEFAULT: tuple[int, int] = (5, 8)
HIGHLIGHT_COLORS: tuple[str, ...] = ("yellow", "green", "blue", "pink", "orange", "purple")
HIGHLIGHT_DEFAULT_COLOR: str = "yellow"

# --- Digests ---
DIGEST_MAX_NOTES: int = int(_env("NOTELAB_DIGEST_MAX_NOTES", "20"))
DIGEST_MAX_TOTAL_CHARS: int = int(_env("NOTELAB_DIGEST_MAX_TOTAL_CHARS", "6000"))
DIGEST_MAX_SNIPPET_CHARS: int = 260
DIGEST_MAX_HEADING_COUNT: int = 6
DIGEST_MAX_BULLET_COUNT: int = 8
DIGEST_MAX_HEADING_CHARS: int = 60
DIGEST_MAX_BULLET_CHARS: int = 80
DIGEST_MAX_PARAGRAPH_COUNT: int = 3
DIGEST_MAX_PARAGRAPH_CHARS: int = 120
DIGEST_CODE_PLACEHOLDER: str = "[code block omitted]"

# --- Connections ---
CONNECTION_DEFAULT_LIMIT: int = 12
CONNECTION_DEFAULT_REASON: str = "Related topic"

# --- Response cache ---
RESPONSE_CACHE_TTL_SECONDS: int = int(_env("NOTELAB_RESPONSE_CACHE_TTL_SECONDS", "86400"))
RESPONSE_CACHE_MAX_ENTRIES: int = int(_env("NOTELAB_RESPONSE_CACHE_MAX_ENTRIES", "256"))
