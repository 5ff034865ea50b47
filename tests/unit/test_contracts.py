"""Unit tests for response contract normalization."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from notelab.llm.contracts import (
    HighlightSuggestion,
    NoteDigest,
    NoteInsightPayload,
    TaskPriority,
    TaskSuggestion,
)


class TestTaskSuggestion:
    def test_wire_names_are_accepted(self):
        task = TaskSuggestion.model_validate(
            {
                "text": "Ship it",
                "dueDate": "2024-06-01",
                "priority": "HIGH",
                "confidence": 0.9,
                "sourceAnchor": {"paragraphIndex": 4},
            }
        )

        assert task.priority is TaskPriority.HIGH
        assert task.source_anchor.paragraph_index == 4
        assert task.normalized_due_date == "2024-06-01"

    @pytest.mark.parametrize("due", [None, "", "  ", "omit"])
    def test_absent_due_dates(self, due):
        assert TaskSuggestion(text="x", due_date=due).normalized_due_date is None

    def test_unknown_priority_becomes_medium(self):
        assert TaskSuggestion.model_validate({"text": "x", "priority": "urgent"}).priority is TaskPriority.MEDIUM

    @pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-0.2, 0.0), ("0.25", 0.25), ("n/a", 0.5)])
    def test_confidence_is_clamped(self, raw, expected):
        assert TaskSuggestion.model_validate({"text": "x", "confidence": raw}).confidence == expected


class TestHighlightSuggestion:
    @pytest.mark.parametrize(
        "color,expected",
        [("green", "green"), (" Purple ", "purple"), ("red", "yellow"), ("", "yellow")],
    )
    def test_normalized_color(self, color, expected):
        assert HighlightSuggestion(color=color, text="t").normalized_color == expected


class TestInsightPayload:
    def test_report_requires_tables(self):
        with pytest.raises(ValidationError):
            NoteInsightPayload.model_validate(
                {"formattedMarkdown": "x", "report": {"title": "", "summary": "", "sections": []}}
            )

    def test_tasks_are_optional(self):
        payload = NoteInsightPayload.model_validate(
            {"formattedMarkdown": "x", "report": {"title": "", "summary": "", "sections": [], "tables": []}}
        )
        assert payload.tasks is None


class TestNoteDigest:
    def test_dumps_with_wire_names(self):
        digest = NoteDigest(note_id="1", note_title="T", notebook_title="N", created_at="2024-01-01T00:00:00Z")

        dumped = digest.model_dump(by_alias=True)

        assert dumped["noteId"] == "1"
        assert dumped["notebookTitle"] == "N"
        assert dumped["headings"] == []
