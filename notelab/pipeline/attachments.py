"""
Attachment tokenizer.

Attachment lines are swapped for opaque `[[ATTACHMENT:n]]` tokens before a
note is sent to the backend and swapped back afterwards. Any attachment the
backend dropped is re-appended under a trailing section, so the pipeline
never loses an attachment.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from notelab.config import ATTACHMENTS_HEADING
from notelab.notes.document import ATTACHMENT_PREFIX, BlockKind, NoteDocument
from notelab.observability.logging import get_logger
from notelab.observability.telemetry import counter

logger = get_logger(__name__)


@dataclass(frozen=True)
class AttachmentToken:
    token: str
    markdown_line: str
    target: str


def attachment_token(index: int) -> str:
    return f"[[ATTACHMENT:{index}]]"


def extract_tokens(document: NoteDocument) -> list[AttachmentToken]:
    """Assign sequential tokens to attachment blocks that have a usable target.

    Blocks whose target is blank after trimming are skipped and do not
    consume an index.
    """
    tokens: list[AttachmentToken] = []
    for block in document.blocks:
        if block.kind != BlockKind.ATTACHMENT or block.attachment is None:
            continue
        target = block.attachment.target.strip()
        if not target:
            continue
        tokens.append(
            AttachmentToken(
                token=attachment_token(len(tokens)),
                markdown_line=f"{ATTACHMENT_PREFIX}{target})",
                target=target,
            )
        )
    return tokens


def tokenize(content: str, tokens: Sequence[AttachmentToken]) -> str:
    """Replace the first occurrence of each token's markdown line with the token."""
    output = content
    for token in tokens:
        output = output.replace(token.markdown_line, token.token, 1)
    return output


def restore(content: str, tokens: Sequence[AttachmentToken]) -> str:
    """Replace every occurrence of each token with its markdown line."""
    output = content
    for token in tokens:
        output = output.replace(token.token, token.markdown_line)
    return output


def ensure_all_attachments_present(markdown: str, tokens: Sequence[AttachmentToken]) -> str:
    """Append attachment lines missing from `markdown` under a trailing section."""
    missing = [token.markdown_line for token in tokens if token.markdown_line not in markdown]
    if not missing:
        return markdown

    counter("pipeline.attachments.reappended", len(missing))
    logger.warning("Backend dropped %d attachment token(s); re-appending", len(missing))

    output = markdown.strip()
    if output:
        output += "\n\n"
    return output + f"## {ATTACHMENTS_HEADING}\n" + "\n".join(missing)


def restore_and_ensure(markdown: str, tokens: Sequence[AttachmentToken]) -> str:
    return ensure_all_attachments_present(restore(markdown, tokens), tokens)
