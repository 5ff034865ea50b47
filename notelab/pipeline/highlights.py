"""
Highlight injector.

Emphasis spans use the `==color:text==` syntax. The number of spans a note
should carry depends on its length; when a note is under-highlighted the
backend is asked for phrases, which are marked in place outside fenced code
or listed under a trailing section when they cannot be located.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from notelab.config import HIGHLIGHT_TIER_DEFAULT, HIGHLIGHT_TIERS, HIGHLIGHTS_HEADING
from notelab.llm.contracts import HighlightSuggestion
from notelab.notes.document import ATTACHMENT_PREFIX
from notelab.observability.logging import get_logger
from notelab.observability.telemetry import counter

logger = get_logger(__name__)

HIGHLIGHT_PATTERN = re.compile(r"==\w+:[^=]+==")
CODE_FENCE = "```"
# Attachment lines, attachment tokens and existing spans are never rewritten
PROTECTED_PATTERN = re.compile(
    rf"^[ \t]*{re.escape(ATTACHMENT_PREFIX)}.*$|\[\[ATTACHMENT:\d+\]\]|{HIGHLIGHT_PATTERN.pattern}",
    re.MULTILINE,
)

SupplementFn = Callable[[str, int], Sequence[HighlightSuggestion]]


def desired_highlight_counts(text: str) -> tuple[int, int]:
    """(min, max) emphasis spans for a text of this length."""
    length = len(text)
    for max_length, low, high in HIGHLIGHT_TIERS:
        if length <= max_length:
            return low, high
    return HIGHLIGHT_TIER_DEFAULT


def count_highlights(markdown: str) -> int:
    return len(HIGHLIGHT_PATTERN.findall(markdown))


def remaining_highlights(max_highlights: int, existing: int) -> int:
    """Spans still missing before a note reaches its maximum."""
    return max(max_highlights - existing, 0)


def slots_to_request(markdown: str) -> int:
    """How many suggestions to request; 0 when the note already meets its minimum."""
    trimmed = markdown.strip()
    if not trimmed:
        return 0
    low, high = desired_highlight_counts(trimmed)
    existing = count_highlights(trimmed)
    if existing >= low:
        return 0
    return remaining_highlights(high, existing)


def apply_highlights_if_needed(markdown: str, supplement_fn: SupplementFn) -> str:
    """Top up emphasis spans using backend suggestions.

    Returns the input unchanged when it is blank, already meets its minimum,
    or the backend suggests nothing.
    """
    remaining = slots_to_request(markdown)
    if remaining == 0:
        return markdown

    suggestions = supplement_fn(markdown.strip(), remaining)
    if not suggestions:
        return markdown
    return inject_highlights(markdown, suggestions)


def inject_highlights(markdown: str, highlights: Sequence[HighlightSuggestion]) -> str:
    current = markdown
    leftovers: list[str] = []

    for item in highlights:
        text = item.text.strip()
        if not text:
            continue
        span = f"=={item.normalized_color}:{text}=="
        current, placed = replace_first_outside_code_blocks(current, text, span)
        if not placed:
            leftovers.append(span)

    if not leftovers:
        return current

    counter("pipeline.highlights.leftover", len(leftovers))
    output = current.strip()
    if output:
        output += "\n\n"
    return output + f"## {HIGHLIGHTS_HEADING}\n" + "\n".join(f"- {span}" for span in leftovers)


def replace_first_outside_code_blocks(markdown: str, target: str, replacement: str) -> tuple[str, bool]:
    """Replace the first occurrence of `target` that is not inside a ``` fence.

    Segments at odd indexes after splitting on the fence marker are inside a
    fence and are never searched. Attachment lines, attachment tokens and
    existing highlight spans are never matched either.
    """
    if not target:
        return markdown, False

    parts = markdown.split(CODE_FENCE)
    for index in range(0, len(parts), 2):
        position = find_unprotected(parts[index], target)
        if position != -1:
            segment = parts[index]
            parts[index] = segment[:position] + replacement + segment[position + len(target) :]
            return CODE_FENCE.join(parts), True
    return markdown, False


def find_unprotected(text: str, target: str) -> int:
    """Index of the first `target` not overlapping a protected span, or -1."""
    protected = [match.span() for match in PROTECTED_PATTERN.finditer(text)]
    position = text.find(target)
    while position != -1:
        end = position + len(target)
        if not any(position < stop and start < end for start, stop in protected):
            return position
        position = text.find(target, position + 1)
    return -1
