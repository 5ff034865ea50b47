"""Post-processing for semantic connection suggestions."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from notelab.config import CONNECTION_DEFAULT_REASON
from notelab.llm.contracts import ConnectionSuggestion, NoteDigest
from notelab.observability.telemetry import counter


@dataclass(frozen=True)
class NoteConnection:
    source_note_id: str
    target_note_id: str
    source_title: str
    target_title: str
    reason: str


def build_connections(
    suggestions: Iterable[ConnectionSuggestion],
    digests: Sequence[NoteDigest],
    limit: int | None = None,
) -> list[NoteConnection]:
    """Keep suggestions that link two distinct known notes, once per undirected pair."""
    by_id = {digest.note_id: digest for digest in digests}
    seen_pairs: set[tuple[str, str]] = set()
    results: list[NoteConnection] = []

    for suggestion in suggestions:
        source_id = suggestion.source_note_id.strip()
        target_id = suggestion.target_note_id.strip()
        if not source_id or not target_id or source_id == target_id:
            counter("insights.connections.dropped_self")
            continue
        pair = (source_id, target_id) if source_id < target_id else (target_id, source_id)
        if pair in seen_pairs:
            counter("insights.connections.dropped_duplicate")
            continue
        source, target = by_id.get(source_id), by_id.get(target_id)
        if source is None or target is None:
            counter("insights.connections.dropped_unknown")
            continue

        seen_pairs.add(pair)
        results.append(
            NoteConnection(
                source_note_id=source_id,
                target_note_id=target_id,
                source_title=source.note_title,
                target_title=target.note_title,
                reason=suggestion.reason.strip() or CONNECTION_DEFAULT_REASON,
            )
        )
        if limit is not None and len(results) >= limit:
            break

    return results
