"""
End-to-end tests for the note organizer over a scripted backend.

Each test drives a full action (tokenize, backend call, merge, restore,
highlight top-up) and checks the markdown the caller would persist.
"""

from __future__ import annotations

import pytest

from notelab.llm.contracts import RewriteMode
from notelab.llm.errors import BadResponseError
from notelab.observability.telemetry import get_counter
from notelab.pipeline.organize import NoteOrganizer, RunCancelledError

NOTE = "# Trip\nPack bags for the trip.\n\n![Attachment](img/map.png)\n\nBook hotel."
ATTACHMENT_LINE = "![Attachment](img/map.png)"
LONG_TAIL = "Long details about the itinerary and the stops along the coast. " * 4


@pytest.fixture
def organizer(client):
    return NoteOrganizer(client)


class TestAutoOrganize:
    def test_report_is_merged_and_attachment_restored(self, backend, organizer, make_report, make_task):
        backend.queue(
            {
                "formattedMarkdown": "# Trip\nPack bags.\n\n[[ATTACHMENT:0]]",
                "report": make_report(title="Trip Plan", summary="Prepare the trip."),
                "tasks": [make_task("Book hotel")],
            }
        )

        result = organizer.auto_organize("Trip", NOTE)

        assert result.title == "Trip Plan"
        assert result.markdown == (
            "## Summary\n\nPrepare the trip.\n\n"
            "## Tasks\n\n- [ ] Book hotel\n\n"
            "# Trip Plan\nPack bags.\n\n" + ATTACHMENT_LINE
        )
        assert [t.text for t in result.tasks] == ["Book hotel"]
        assert "[[ATTACHMENT:0]]" in backend.prompts[0]
        assert ATTACHMENT_LINE not in backend.prompts[0]
        assert backend.calls == 1

    def test_dropped_attachment_is_reappended(self, backend, organizer, make_report):
        backend.queue({"formattedMarkdown": "Pack bags.", "report": make_report(summary="Trip prep.")})

        result = organizer.auto_organize("Trip", NOTE)

        assert result.markdown.endswith("## Attachments\n" + ATTACHMENT_LINE)
        assert result.markdown.count(ATTACHMENT_LINE) == 1
        assert get_counter("pipeline.attachments.reappended") == 1

    def test_long_note_is_topped_up_with_highlights(self, backend, organizer, make_report):
        backend.queue(
            {"formattedMarkdown": "Pack bags early.\n\n" + LONG_TAIL, "report": make_report(summary="Trip prep.")},
            {"highlights": [{"color": "blue", "text": "Pack bags"}, {"color": "pink", "text": "not in the note"}]},
        )

        result = organizer.auto_organize("Trip", "Pack bags early. " + LONG_TAIL)

        assert "==blue:Pack bags== early." in result.markdown
        assert result.markdown.endswith("## Highlights\n- ==pink:not in the note==")
        assert backend.calls == 2

    def test_highlights_never_touch_restored_attachments(self, backend, organizer, make_report):
        body = "[[ATTACHMENT:0]]\n\nThe map shows every stop.\n\n" + LONG_TAIL
        backend.queue(
            {"formattedMarkdown": body, "report": make_report(summary="Trip prep.")},
            {"highlights": [{"color": "green", "text": "map.png"}, {"color": "blue", "text": "map"}]},
        )

        result = organizer.auto_organize("Trip", NOTE + "\n\n" + LONG_TAIL)

        assert f"\n{ATTACHMENT_LINE}\n" in result.markdown
        assert "The ==blue:map== shows every stop." in result.markdown
        assert result.markdown.endswith("## Highlights\n- ==green:map.png==")

    def test_partial_answer_keeps_body_and_title(self, backend, organizer):
        backend.queue({"formattedMarkdown": "Just the body."}, {"formattedMarkdown": "Just the body."})

        result = organizer.auto_organize("Trip", "just the body")

        assert result.title == "Trip"
        assert result.markdown == "Just the body."
        assert result.tasks == []

    def test_backend_error_propagates(self, backend, organizer):
        backend.queue(BadResponseError(500))

        with pytest.raises(BadResponseError):
            organizer.auto_organize("Trip", NOTE)

    def test_cancel_after_backend_call(self, backend, client, make_report):
        backend.queue({"formattedMarkdown": "x", "report": make_report()})
        organizer = NoteOrganizer(client, cancelled=lambda: True)

        with pytest.raises(RunCancelledError):
            organizer.auto_organize("Trip", NOTE)

        assert backend.calls == 1
        assert get_counter("pipeline.auto_organize.cancelled") == 1


class TestRewrite:
    def test_rewrite_restores_attachments(self, backend, organizer):
        backend.queue({"title": "Trip checklist", "markdown": "- Pack bags\n- Book hotel\n\n[[ATTACHMENT:0]]"})

        result = organizer.rewrite("Trip", NOTE, RewriteMode.DEDUPE)

        assert result.title == "Trip checklist"
        assert result.markdown == "- Pack bags\n- Book hotel\n\n" + ATTACHMENT_LINE
        assert "[[ATTACHMENT:0]]" in backend.prompts[0]

    def test_blank_title_keeps_original(self, backend, organizer):
        backend.queue({"title": "  ", "markdown": "Short text."})

        assert organizer.rewrite("Trip", "short text", "optimize").title == "Trip"


class TestExtractTodos:
    def test_tasks_are_prepended(self, backend, organizer, make_task):
        backend.queue({"tasks": [make_task("Call Ann"), make_task("Send deck")]})

        result = organizer.extract_todos("Body text")

        assert result.changed
        assert result.markdown == "## Tasks\n\n- [ ] Call Ann\n\n- [ ] Send deck\n\nBody text"

    def test_no_tasks_leaves_content_unchanged(self, backend, organizer):
        backend.queue({"tasks": []}, {"tasks": []})

        result = organizer.extract_todos("Nothing to do here")

        assert not result.changed
        assert result.markdown == "Nothing to do here"
        assert backend.calls == 2
