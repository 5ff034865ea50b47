"""
Insight service - cached digest-based intents.

Wraps the semantic connection and recent focus intents with the response
cache. A cached value is reused while its TTL holds and the request hash
matches; `force=True` always calls the backend.
"""

from __future__ import annotations

from collections.abc import Sequence

from notelab.config import CONNECTION_DEFAULT_LIMIT
from notelab.insights.connections import NoteConnection, build_connections
from notelab.llm.client import AIClient, FocusPayload
from notelab.llm.contracts import NoteDigest, RecentFocusReport
from notelab.llm.decoding import extract_json_object, try_decode
from notelab.llm.providers import AISettings
from notelab.observability.logging import get_logger
from notelab.observability.telemetry import log_event
from notelab.storage.cache import ResponseCache, input_hash

logger = get_logger(__name__)

CONNECTIONS_NAMESPACE = "connections"
RECENT_FOCUS_NAMESPACE = "recent_focus"


class InsightService:
    def __init__(
        self,
        client: AIClient,
        cache: ResponseCache | None = None,
        settings: AISettings | None = None,
    ):
        self.client = client
        self.cache = cache or ResponseCache()
        self.settings = settings or client.settings or AISettings.from_env()

    def _hash(self, digests: Sequence[NoteDigest], limit: int) -> str:
        return input_hash(self.settings.provider.value, self.settings.model_name, limit, digests)

    def connections(
        self,
        digests: Sequence[NoteDigest],
        limit: int = CONNECTION_DEFAULT_LIMIT,
        force: bool = False,
    ) -> list[NoteConnection]:
        """Related note pairs for the given digests, deduplicated and titled."""
        if not digests:
            return []

        key = self._hash(digests, limit)
        if not force:
            cached = self.cache.load(CONNECTIONS_NAMESPACE, key)
            if cached is not None:
                return cached

        suggestions = self.client.semantic_connections(digests, limit)
        connections = build_connections(suggestions, digests, limit)
        self.cache.save(CONNECTIONS_NAMESPACE, key, connections)
        log_event("insights.connections.built", suggested=len(suggestions), kept=len(connections))
        return connections

    def recent_focus(self, digests: Sequence[NoteDigest], force: bool = False) -> FocusPayload | None:
        """Recent focus report for the given digests; None when there is nothing to report on."""
        if not digests:
            return None

        key = self._hash(digests, len(digests))
        if not force:
            cached = self.cache.load(RECENT_FOCUS_NAMESPACE, key)
            if cached is not None:
                return cached

        payload = self.client.recent_focus_report(digests)
        if payload.report is None and payload.markdown:
            embedded = extract_json_object(payload.markdown)
            report = try_decode(RecentFocusReport, embedded) if embedded else None
            if report is not None:
                logger.info("Recovered recent focus report from raw answer")
                payload = FocusPayload(report, payload.markdown)

        self.cache.save(RECENT_FOCUS_NAMESPACE, key, payload)
        return payload
