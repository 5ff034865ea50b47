"""Unit tests for the attachment tokenizer."""

from __future__ import annotations

from notelab.notes.document import Block, NoteDocument
from notelab.pipeline.attachments import (
    AttachmentToken,
    ensure_all_attachments_present,
    extract_tokens,
    restore,
    restore_and_ensure,
    tokenize,
)

NOTE = "Intro\n\n![Attachment](u1/photo.jpg)\n\nMiddle\n\n![Attachment](u1/brief.pdf)\n\nEnd"


class TestExtractTokens:
    def test_tokens_are_sequential_in_document_order(self):
        tokens = extract_tokens(NoteDocument.from_markdown(NOTE))

        assert [t.token for t in tokens] == ["[[ATTACHMENT:0]]", "[[ATTACHMENT:1]]"]
        assert tokens[0].markdown_line == "![Attachment](u1/photo.jpg)"
        assert tokens[1].target == "u1/brief.pdf"

    def test_storage_path_wins_over_file_name(self):
        doc = NoteDocument([Block.for_attachment("photo.jpg", storage_path="  u1/abc.jpg ")])

        tokens = extract_tokens(doc)

        assert tokens[0].target == "u1/abc.jpg"
        assert tokens[0].markdown_line == "![Attachment](u1/abc.jpg)"

    def test_file_name_used_without_storage_path(self):
        doc = NoteDocument([Block.for_attachment("scan.pdf")])

        assert extract_tokens(doc)[0].target == "scan.pdf"

    def test_blank_target_is_skipped_without_consuming_an_index(self):
        doc = NoteDocument(
            [
                Block.for_attachment("", storage_path="   "),
                Block.for_attachment("b.png"),
            ]
        )

        tokens = extract_tokens(doc)

        assert len(tokens) == 1
        assert tokens[0].token == "[[ATTACHMENT:0]]"
        assert tokens[0].target == "b.png"

    def test_no_attachments(self):
        assert extract_tokens(NoteDocument.from_markdown("just text")) == []


class TestTokenizeRestore:
    def test_tokenize_replaces_only_first_occurrence(self):
        line = "![Attachment](a.png)"
        token = AttachmentToken("[[ATTACHMENT:0]]", line, "a.png")

        result = tokenize(f"{line}\n\n{line}", [token])

        assert result == f"[[ATTACHMENT:0]]\n\n{line}"

    def test_restore_replaces_every_occurrence(self):
        token = AttachmentToken("[[ATTACHMENT:0]]", "![Attachment](a.png)", "a.png")

        result = restore("[[ATTACHMENT:0]] and again [[ATTACHMENT:0]]", [token])

        assert result == "![Attachment](a.png) and again ![Attachment](a.png)"

    def test_tokenized_text_hides_attachment_lines(self):
        tokens = extract_tokens(NoteDocument.from_markdown(NOTE))

        tokenized = tokenize(NOTE, tokens)

        assert "![Attachment]" not in tokenized
        assert "[[ATTACHMENT:1]]" in tokenized


class TestEnsureAttachments:
    def test_missing_attachment_is_appended_under_section(self):
        token = AttachmentToken("[[ATTACHMENT:0]]", "![Attachment](a.png)", "a.png")

        result = ensure_all_attachments_present("Rewritten body\n\n", [token])

        assert result == "Rewritten body\n\n## Attachments\n![Attachment](a.png)"

    def test_nothing_missing_returns_input_unchanged(self):
        token = AttachmentToken("[[ATTACHMENT:0]]", "![Attachment](a.png)", "a.png")
        markdown = "Body\n\n![Attachment](a.png)\n"

        assert ensure_all_attachments_present(markdown, [token]) == markdown

    def test_empty_body_gets_only_the_section(self):
        token = AttachmentToken("[[ATTACHMENT:0]]", "![Attachment](a.png)", "a.png")

        assert ensure_all_attachments_present("   ", [token]) == "## Attachments\n![Attachment](a.png)"

    def test_round_trip_keeps_every_attachment_when_backend_drops_tokens(self):
        tokens = extract_tokens(NoteDocument.from_markdown(NOTE))
        backend_answer = "Intro rewritten\n\n[[ATTACHMENT:1]]\n\nEnd"

        result = restore_and_ensure(backend_answer, tokens)

        for token in tokens:
            assert token.markdown_line in result
        assert result.count("![Attachment](u1/brief.pdf)") == 1
        assert result.endswith("## Attachments\n![Attachment](u1/photo.jpg)")

    def test_round_trip_of_untouched_tokenized_text(self):
        tokens = extract_tokens(NoteDocument.from_markdown(NOTE))

        assert restore_and_ensure(tokenize(NOTE, tokens), tokens) == NOTE
