"""
Response contracts for every AI intent.

Backends answer in camelCase JSON; models accept both the wire names and the
Python field names. Report and task fields are required so that a
half-formed report fails validation and the caller can fall back to the
partial shape.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from notelab.config import HIGHLIGHT_COLORS, HIGHLIGHT_DEFAULT_COLOR


class _Contract(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RewriteMode(str, Enum):
    """Rewrite flavor; each has its own prompt template."""

    OPTIMIZE = "optimize"
    DEDUPE = "dedupe"
    EXPAND = "expand"


class SourceAnchor(_Contract):
    paragraph_index: int = 0


class TaskSuggestion(_Contract):
    text: str
    due_date: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    confidence: float = Field(default=0.5)
    source_anchor: SourceAnchor = Field(default_factory=SourceAnchor)

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: object) -> TaskPriority:
        key = str(value or "").strip().lower()
        try:
            return TaskPriority(key)
        except ValueError:
            return TaskPriority.MEDIUM

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: object) -> float:
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.5
        return max(0.0, min(1.0, number))

    @property
    def normalized_due_date(self) -> str | None:
        """Due date, or None when absent, blank or the literal "omit"."""
        if self.due_date is None:
            return None
        value = self.due_date.strip()
        if not value or value == "omit":
            return None
        return value


class ReportSection(_Contract):
    heading: str
    paragraphs: list[str]
    bullets: list[str]


class ReportTable(_Contract):
    title: str
    columns: list[str]
    rows: list[list[str]]
    notes: str | None = None


class InsightReport(_Contract):
    title: str
    summary: str
    sections: list[ReportSection]
    tables: list[ReportTable]


class NoteInsightPayload(_Contract):
    formatted_markdown: str
    report: InsightReport
    tasks: list[TaskSuggestion] | None = None


class PartialInsightPayload(_Contract):
    formatted_markdown: str


class ExtractTasksPayload(_Contract):
    tasks: list[TaskSuggestion]


class RewritePayload(_Contract):
    title: str | None = None
    markdown: str


class HighlightSuggestion(_Contract):
    color: str
    text: str

    @property
    def normalized_color(self) -> str:
        key = self.color.strip().lower()
        return key if key in HIGHLIGHT_COLORS else HIGHLIGHT_DEFAULT_COLOR


class HighlightsPayload(_Contract):
    highlights: list[HighlightSuggestion]


class ConnectionSuggestion(_Contract):
    source_note_id: str
    target_note_id: str
    reason: str = ""


class ConnectionsPayload(_Contract):
    connections: list[ConnectionSuggestion]


class NoteDigest(_Contract):
    """Compact, budgeted view of one note sent to digest-based intents."""

    note_id: str
    note_title: str
    notebook_title: str
    created_at: str
    headings: list[str] = Field(default_factory=list)
    bullets: list[str] = Field(default_factory=list)
    snippet: str = ""


class ReportSourceNote(_Contract):
    note_id: str
    note_title: str
    notebook_title: str
    created_at: str


class RecentFocusReport(_Contract):
    title: str
    summary: str
    time_range_label: str
    sections: list[ReportSection]
    tables: list[ReportTable]
    sources: list[ReportSourceNote]
