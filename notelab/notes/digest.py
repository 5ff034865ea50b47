"""
Note digest builder.

Digests are the compact, budgeted view of recent notes sent to the
recent-focus and semantic-connection intents. Code blocks are replaced by a
placeholder and completed todos are dropped before headings, bullets and
paragraphs are collected.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from notelab import config
from notelab.llm.contracts import NoteDigest


@dataclass(frozen=True)
class Note:
    """The slice of a stored note the digest builder needs."""

    id: str
    title: str
    content: str
    created_at: datetime
    notebook_title: str = ""


@dataclass(frozen=True)
class DigestBudget:
    max_notes: int = config.DIGEST_MAX_NOTES
    max_total_chars: int = config.DIGEST_MAX_TOTAL_CHARS
    max_snippet_chars: int = config.DIGEST_MAX_SNIPPET_CHARS
    max_heading_count: int = config.DIGEST_MAX_HEADING_COUNT
    max_bullet_count: int = config.DIGEST_MAX_BULLET_COUNT
    max_heading_chars: int = config.DIGEST_MAX_HEADING_CHARS
    max_bullet_chars: int = config.DIGEST_MAX_BULLET_CHARS
    max_paragraph_count: int = config.DIGEST_MAX_PARAGRAPH_COUNT
    max_paragraph_chars: int = config.DIGEST_MAX_PARAGRAPH_CHARS


def build_recent_digests(notes: Iterable[Note], budget: DigestBudget | None = None) -> list[NoteDigest]:
    """Digest the newest notes first, then trim to the total character budget.

    Trailing digests are dropped until the total fits; if a single digest
    is still too large its snippet is shortened.
    """
    budget = budget or DigestBudget()
    ordered = sorted(notes, key=lambda note: _as_utc(note.created_at), reverse=True)
    digests = [build_digest(note, budget) for note in ordered[: budget.max_notes]]

    while len(digests) > 1 and total_chars(digests) > budget.max_total_chars:
        digests.pop()

    if digests and total_chars(digests) > budget.max_total_chars:
        limit = max(40, budget.max_snippet_chars // 2)
        digests[0] = digests[0].model_copy(update={"snippet": digests[0].snippet[:limit]})

    return digests


def build_digest(note: Note, budget: DigestBudget | None = None) -> NoteDigest:
    budget = budget or DigestBudget()
    headings: list[str] = []
    bullets: list[str] = []
    paragraphs: list[str] = []

    for line in sanitize_content(note.content).split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            heading = stripped.strip("# ")
            if heading:
                headings.append(heading[: budget.max_heading_chars])
            continue
        if stripped.startswith("- [ ] "):
            bullets.append(stripped[6:][: budget.max_bullet_chars])
            continue
        if stripped.startswith("- "):
            bullets.append(stripped[2:][: budget.max_bullet_chars])
            continue
        paragraphs.append(stripped)

    capped = [p[: budget.max_paragraph_chars] for p in paragraphs[: budget.max_paragraph_count]]
    return NoteDigest(
        note_id=note.id,
        note_title=note.title,
        notebook_title=note.notebook_title,
        created_at=_as_utc(note.created_at).strftime("%Y-%m-%dT%H:%M:%SZ"),
        headings=headings[: budget.max_heading_count],
        bullets=bullets[: budget.max_bullet_count],
        snippet=" ".join(capped)[: budget.max_snippet_chars],
    )


def sanitize_content(content: str) -> str:
    """Replace fenced code with a placeholder and drop completed todos."""
    lines = []
    for line in strip_fenced_code(content).split("\n"):
        stripped = line.strip()
        if stripped.startswith(("- [x] ", "- [X] ")):
            continue
        lines.append(stripped)
    return "\n".join(lines)


def strip_fenced_code(content: str) -> str:
    output: list[str] = []
    inside = False
    for line in content.split("\n"):
        if line.strip().startswith("```"):
            inside = not inside
            if not inside:
                output.append(config.DIGEST_CODE_PLACEHOLDER)
            continue
        if not inside:
            output.append(line)
    return "\n".join(output)


def total_chars(digests: Sequence[NoteDigest]) -> int:
    return sum(
        len(d.note_title)
        + len(d.notebook_title)
        + len(" ".join(d.headings))
        + len(" ".join(d.bullets))
        + len(d.snippet)
        for d in digests
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
