"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os

from notelab.infrastructure.env import ensure_env_loaded

ensure_env_loaded()

# Locale for user-facing error messages ("en" or "zh-CN")
LOCALE = os.getenv("NOTELAB_LOCALE", "en")

# Provider selection ("gemini" or "deepseek")
AI_PROVIDER = os.getenv("NOTELAB_AI_PROVIDER", "gemini")

# Google Gemini
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", os.getenv("GOOGLE_API_KEY", ""))
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_MAX_TOKENS = int(os.getenv("GEMINI_MAX_TOKENS", "8192"))
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))

# DeepSeek (OpenAI-compatible chat completions)
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")
DEEPSEEK_BASE_URL = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
DEEPSEEK_MAX_TOKENS = int(os.getenv("DEEPSEEK_MAX_TOKENS", "8192"))
DEEPSEEK_TEMPERATURE = float(os.getenv("DEEPSEEK_TEMPERATURE", "0.2"))
