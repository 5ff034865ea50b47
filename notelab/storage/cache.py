"""
In-memory response cache for digest-based intents.

Entries expire after a TTL and are keyed by a SHA-256 hash of everything
that shaped the request (provider, model, limit, digests), so a changed
note or a provider switch naturally misses.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from hashlib import sha256
from typing import Any

from cachetools import TTLCache

from notelab.config import RESPONSE_CACHE_MAX_ENTRIES, RESPONSE_CACHE_TTL_SECONDS
from notelab.llm.contracts import NoteDigest
from notelab.observability.telemetry import counter


def input_hash(provider_id: str, model_name: str, limit: int, digests: Sequence[NoteDigest]) -> str:
    """Stable hash of a digest request (sorted-key JSON)."""
    payload = {
        "providerId": provider_id,
        "modelName": model_name,
        "limit": limit,
        "digests": [digest.model_dump(by_alias=True) for digest in digests],
    }
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return sha256(encoded).hexdigest()


class ResponseCache:
    """TTL cache namespaced by intent."""

    def __init__(self, ttl_seconds: int = RESPONSE_CACHE_TTL_SECONDS, maxsize: int = RESPONSE_CACHE_MAX_ENTRIES):
        self._entries: TTLCache[str, Any] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)

    def load(self, namespace: str, key: str) -> Any | None:
        value = self._entries.get(f"{namespace}:{key}")
        counter(f"cache.{namespace}.{'hit' if value is not None else 'miss'}")
        return value

    def save(self, namespace: str, key: str, value: Any) -> None:
        self._entries[f"{namespace}:{key}"] = value

    def clear(self) -> None:
        self._entries.clear()
