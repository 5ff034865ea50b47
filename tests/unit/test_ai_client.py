"""
Unit tests for AIClient intents against a scripted backend.

Covers decoding of fenced answers, the single semantic retry, the
full/partial fallback of analyze_note and error propagation.
"""

from __future__ import annotations

import pytest

from notelab.llm.contracts import NoteDigest, RewriteMode, TaskPriority
from notelab.llm.errors import BadResponseError, DecodingFailedError, EmptyResponseError
from notelab.observability.telemetry import get_counter


def _digest(note_id: str) -> NoteDigest:
    return NoteDigest(
        note_id=note_id,
        note_title=f"Note {note_id}",
        notebook_title="Work",
        created_at="2024-05-01T09:00:00Z",
    )


class TestExtractTasks:
    def test_fenced_answer_is_decoded(self, backend, client):
        backend.queue('```json\n{"tasks": [{"text": "Call Bob", "priority": "high"}]}\n```')

        tasks = client.extract_tasks("call bob tomorrow")

        assert [t.text for t in tasks] == ["Call Bob"]
        assert tasks[0].priority is TaskPriority.HIGH
        assert backend.calls == 1

    def test_empty_list_is_retried_once(self, backend, client, make_task):
        backend.queue({"tasks": []}, {"tasks": [make_task("Write report")]})

        tasks = client.extract_tasks("write the report")

        assert [t.text for t in tasks] == ["Write report"]
        assert backend.calls == 2
        assert get_counter("ai.extract_tasks.retry") == 1

    def test_two_empty_answers_give_empty_list(self, backend, client):
        backend.queue({"tasks": []}, {"tasks": []})

        assert client.extract_tasks("nothing to do") == []
        assert backend.calls == 2

    def test_prompt_contains_text(self, backend, client, make_task):
        backend.queue({"tasks": [make_task("x")]})

        client.extract_tasks("renew passport")

        assert "renew passport" in backend.prompts[0]

    def test_undecodable_first_answer_raises(self, backend, client):
        backend.queue("sorry, I cannot help")

        with pytest.raises(DecodingFailedError):
            client.extract_tasks("text")
        assert backend.calls == 1

    def test_transport_error_is_not_retried(self, backend, client):
        backend.queue(BadResponseError(503, "overloaded"))

        with pytest.raises(BadResponseError) as exc_info:
            client.extract_tasks("text")

        assert exc_info.value.status_code == 503
        assert backend.calls == 1


class TestAnalyzeNote:
    def test_full_answer(self, backend, client, make_report, make_task):
        backend.queue(
            {
                "formattedMarkdown": "# Plan\nBody",
                "report": make_report(title="Plan", summary="Short plan."),
                "tasks": [make_task("Book venue", due_date="2024-06-01")],
            }
        )

        analysis = client.analyze_note("plan text", "Untitled")

        assert analysis.rewritten_body == "# Plan\nBody"
        assert analysis.report.title == "Plan"
        assert [t.text for t in analysis.tasks] == ["Book venue"]
        assert backend.calls == 1

    def test_missing_tasks_becomes_empty_list(self, backend, client, make_report):
        backend.queue({"formattedMarkdown": "Body", "report": make_report(summary="S")})

        assert client.analyze_note("text", "T").tasks == []

    def test_partial_then_full(self, backend, client, make_report):
        backend.queue(
            {"formattedMarkdown": "first"},
            {"formattedMarkdown": "second", "report": make_report(summary="S")},
        )

        analysis = client.analyze_note("text", "T")

        assert analysis.rewritten_body == "second"
        assert analysis.report is not None
        assert backend.calls == 2

    def test_partial_twice_has_no_report(self, backend, client):
        backend.queue({"formattedMarkdown": "first"}, {"formattedMarkdown": "second"})

        analysis = client.analyze_note("text", "T")

        assert analysis.report is None
        assert analysis.tasks == []
        assert analysis.rewritten_body == "second"
        assert backend.calls == 2

    def test_undecodable_retry_keeps_first_partial(self, backend, client):
        backend.queue({"formattedMarkdown": "first"}, "not json")

        analysis = client.analyze_note("text", "T")

        assert analysis.rewritten_body == "first"
        assert analysis.report is None
        assert get_counter("ai.analyze_note.retry_decode_error") == 1

    def test_half_formed_report_is_partial(self, backend, client, make_report):
        backend.queue(
            {"formattedMarkdown": "first", "report": {"title": "x"}},
            {"formattedMarkdown": "second", "report": make_report()},
        )

        analysis = client.analyze_note("text", "T")

        assert analysis.rewritten_body == "second"
        assert backend.calls == 2

    def test_neither_shape_raises(self, backend, client):
        backend.queue({"markdown": "wrong intent"})

        with pytest.raises(DecodingFailedError):
            client.analyze_note("text", "T")

    def test_protected_tokens_reach_prompt(self, backend, client, make_report):
        backend.queue({"formattedMarkdown": "x", "report": make_report()})

        client.analyze_note("see [[ATTACHMENT:0]]", "T", protected_tokens=["[[ATTACHMENT:0]]"])

        assert "Attachment tokens: [[ATTACHMENT:0]]" in backend.prompts[0]


class TestRewriteNote:
    def test_markdown_is_trimmed(self, backend, client):
        backend.queue({"title": "Better", "markdown": "  # Better\nText\n\n"})

        result = client.rewrite_note("text", "Old", RewriteMode.OPTIMIZE)

        assert result.title == "Better"
        assert result.markdown == "# Better\nText"

    def test_mode_accepts_plain_string(self, backend, client):
        backend.queue({"title": None, "markdown": "x"})

        result = client.rewrite_note("text", "Old", "dedupe")

        assert result.title is None
        assert "[Formatting]" in backend.prompts[0]

    def test_blank_markdown_raises(self, backend, client):
        backend.queue({"title": None, "markdown": "   "})

        with pytest.raises(EmptyResponseError):
            client.rewrite_note("text", "Old", RewriteMode.EXPAND)
        assert backend.calls == 1


class TestSupplementHighlights:
    def test_returns_suggestions(self, backend, client):
        backend.queue({"highlights": [{"color": "green", "text": "deadline"}]})

        highlights = client.supplement_highlights("the deadline moved", 3)

        assert [(h.color, h.text) for h in highlights] == [("green", "deadline")]

    def test_empty_list_is_valid(self, backend, client):
        backend.queue({"highlights": []})

        assert client.supplement_highlights("text", 2) == []
        assert backend.calls == 1


class TestSemanticConnections:
    def test_no_call_for_empty_digests(self, backend, client):
        assert client.semantic_connections([], 5) == []
        assert backend.calls == 0

    def test_no_call_for_zero_limit(self, backend, client):
        assert client.semantic_connections([_digest("a")], 0) == []
        assert backend.calls == 0

    def test_returns_suggestions(self, backend, client):
        backend.queue({"connections": [{"sourceNoteId": "a", "targetNoteId": "b", "reason": "Both about hiring"}]})

        connections = client.semantic_connections([_digest("a"), _digest("b")], 5)

        assert connections[0].source_note_id == "a"
        assert connections[0].reason == "Both about hiring"
        assert "- noteId: b" in backend.prompts[0]


class TestRecentFocusReport:
    def test_structured_report(self, backend, client):
        backend.queue(
            {
                "title": "Focus",
                "summary": "Hiring",
                "timeRangeLabel": "Last 3 notes",
                "sections": [],
                "tables": [],
                "sources": [
                    {"noteId": "a", "noteTitle": "A", "notebookTitle": "Work", "createdAt": "2024-05-01T09:00:00Z"}
                ],
            }
        )

        payload = client.recent_focus_report([_digest("a")])

        assert payload.report.title == "Focus"
        assert payload.report.sources[0].note_id == "a"
        assert payload.markdown is None

    def test_raw_answer_is_returned(self, backend, client):
        backend.queue("You mostly wrote about hiring.")

        payload = client.recent_focus_report([_digest("a")])

        assert payload.report is None
        assert payload.markdown == "You mostly wrote about hiring."
