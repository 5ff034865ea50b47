"""
Note document model - markdown <-> ordered block sequence.

The editor stores notes as typed blocks; the AI pipeline works on the
markdown serialization. `NoteDocument.from_markdown` and `flatten_markdown`
convert between the two for every block kind the pipeline touches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

ATTACHMENT_PREFIX = "![Attachment]("


class BlockKind(str, Enum):
    """Kind of a document block."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET = "bullet"
    NUMBERED = "numbered"
    TODO = "todo"
    QUOTE = "quote"
    CODE = "code"
    TABLE = "table"
    ATTACHMENT = "attachment"


class AttachmentType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


@dataclass
class Attachment:
    """Reference to an attachment. Bytes never travel through the pipeline."""

    file_name: str
    storage_path: str | None = None
    type: AttachmentType = AttachmentType.IMAGE

    @property
    def target(self) -> str:
        """Link target written into markdown: storage path first, then file name."""
        if self.storage_path is not None:
            return self.storage_path
        return self.file_name


@dataclass
class Block:
    kind: BlockKind
    text: str = ""
    level: int | None = None
    number: int | None = None
    is_checked: bool | None = None
    table: list[list[str]] | None = None
    attachment: Attachment | None = None
    # Fence info string of a code block, e.g. "python"
    info: str = ""

    @classmethod
    def paragraph(cls, text: str) -> Block:
        return cls(BlockKind.PARAGRAPH, text)

    @classmethod
    def heading(cls, level: int, text: str) -> Block:
        return cls(BlockKind.HEADING, text, level=level)

    @classmethod
    def todo(cls, text: str, checked: bool = False) -> Block:
        return cls(BlockKind.TODO, text, is_checked=checked)

    @classmethod
    def for_attachment(
        cls, file_name: str, storage_path: str | None = None, type: AttachmentType | None = None
    ) -> Block:
        if type is None:
            type = AttachmentType.PDF if file_name.lower().endswith(".pdf") else AttachmentType.IMAGE
        return cls(
            BlockKind.ATTACHMENT,
            attachment=Attachment(file_name=file_name, storage_path=storage_path, type=type),
        )

    @property
    def markdown_text(self) -> str:
        if self.kind == BlockKind.HEADING:
            level = max(1, min(self.level or 1, 6))
            return "#" * level + " " + self.text
        if self.kind == BlockKind.BULLET:
            return "- " + self.text
        if self.kind == BlockKind.NUMBERED:
            return f"{self.number or 1}. " + self.text
        if self.kind == BlockKind.TODO:
            return ("- [x] " if self.is_checked else "- [ ] ") + self.text
        if self.kind == BlockKind.QUOTE:
            return "> " + self.text
        if self.kind == BlockKind.CODE:
            return "```" + self.info + "\n" + self.text + "\n```"
        if self.kind == BlockKind.TABLE:
            return _markdown_table(self.table or [])
        if self.kind == BlockKind.ATTACHMENT:
            target = self.attachment.target if self.attachment else "unknown"
            return f"{ATTACHMENT_PREFIX}{target})"
        return self.text

    @property
    def plain_text(self) -> str:
        if self.kind in (BlockKind.HEADING, BlockKind.CODE, BlockKind.PARAGRAPH):
            return self.text
        if self.kind == BlockKind.TABLE:
            return "\n".join("\t".join(row) for row in self.table or [])
        if self.kind == BlockKind.ATTACHMENT:
            name = self.attachment.file_name if self.attachment else "unknown"
            return f"[Attachment: {name}]"
        return self.markdown_text


@dataclass
class NoteDocument:
    blocks: list[Block] = field(default_factory=list)
    version: int = 1

    @classmethod
    def from_markdown(cls, text: str) -> NoteDocument:
        """Parse markdown into blocks. An empty note is a single empty paragraph."""
        if not text.strip("\r\n"):
            return cls([Block.paragraph("")])

        lines = text.splitlines()
        blocks: list[Block] = []
        paragraph_buffer: list[str] = []

        def flush_paragraph() -> None:
            joined = "\n".join(paragraph_buffer).strip()
            if joined:
                blocks.append(Block.paragraph(joined))
            paragraph_buffer.clear()

        index = 0
        while index < len(lines):
            line = lines[index]
            stripped = line.strip(" \t")

            if stripped.startswith("```"):
                flush_paragraph()
                info = stripped[3:].strip()
                code_lines: list[str] = []
                index += 1
                while index < len(lines) and not lines[index].strip(" \t").startswith("```"):
                    code_lines.append(lines[index])
                    index += 1
                blocks.append(Block(BlockKind.CODE, "\n".join(code_lines), info=info))
                index += 1
                continue

            next_line = lines[index + 1] if index + 1 < len(lines) else ""
            if is_table_header(stripped, next_line):
                flush_paragraph()
                rows = [split_table_row(line)]
                row_index = index + 2
                while row_index < len(lines):
                    candidate = lines[row_index].strip(" \t")
                    if not candidate or "|" not in candidate:
                        break
                    rows.append(split_table_row(candidate))
                    row_index += 1
                width = max(max(len(row) for row in rows), 1)
                table = [row + [""] * (width - len(row)) for row in rows]
                blocks.append(Block(BlockKind.TABLE, table=table))
                index = row_index
                continue

            if not stripped:
                flush_paragraph()
                index += 1
                continue

            block = _parse_line(stripped)
            if block is not None:
                flush_paragraph()
                blocks.append(block)
            else:
                paragraph_buffer.append(line)
            index += 1

        flush_paragraph()
        return cls(blocks or [Block.paragraph("")])

    def flatten_markdown(self) -> str:
        return "\n\n".join(block.markdown_text for block in self.blocks)

    def flatten_plain_text(self) -> str:
        return "\n\n".join(block.plain_text for block in self.blocks)

    def attachments(self) -> list[Attachment]:
        return [b.attachment for b in self.blocks if b.kind == BlockKind.ATTACHMENT and b.attachment]


def prepend_tasks(document: NoteDocument, tasks: list[str], heading: str = "Tasks") -> NoteDocument:
    """Return a copy of the document with a heading and unchecked todos at the top."""
    texts = [t.strip() for t in tasks if t.strip()]
    if not texts:
        return document
    head = [Block.heading(2, heading)] + [Block.todo(t) for t in texts]
    body = [b for b in document.blocks if not (b.kind == BlockKind.PARAGRAPH and not b.text)]
    return NoteDocument(head + body, version=document.version)


def is_table_header(line: str, next_line: str) -> bool:
    """A pipe line followed by a separator made only of pipes, dashes, colons and spaces."""
    if "|" not in line:
        return False
    candidate = next_line.strip(" \t")
    if "|" not in candidate:
        return False
    raw = candidate.replace("|", "")
    return not raw.strip("-: ") and "-" in raw


def split_table_row(line: str) -> list[str]:
    trimmed = line.strip(" \t")
    if trimmed.startswith("|"):
        trimmed = trimmed[1:]
    if trimmed.endswith("|"):
        trimmed = trimmed[:-1]
    return [cell.strip(" \t") for cell in trimmed.split("|")]


def _parse_line(line: str) -> Block | None:
    if line.startswith(ATTACHMENT_PREFIX) and line.endswith(")"):
        target = line[len(ATTACHMENT_PREFIX) : -1].strip(" \t")
        if target:
            file_name = PurePosixPath(target).name or "attachment"
            return Block.for_attachment(file_name, storage_path=target)

    if line.startswith("#"):
        level = len(line) - len(line.lstrip("#"))
        if level <= 6 and line.startswith("#" * level + " "):
            return Block.heading(level, line[level + 1 :].strip(" \t"))

    if line.startswith("- [ ] "):
        return Block.todo(line[6:])
    if line.startswith(("- [x] ", "- [X] ")):
        return Block.todo(line[6:], checked=True)

    if line.startswith(("- ", "* ", "• ")):
        return Block(BlockKind.BULLET, line[2:])

    digits = len(line) - len(line.lstrip("0123456789"))
    if digits and line[digits : digits + 2] == ". ":
        return Block(BlockKind.NUMBERED, line[digits + 2 :], number=int(line[:digits]))

    if line.startswith("> "):
        return Block(BlockKind.QUOTE, line[2:])

    return None


def _markdown_table(rows: list[list[str]]) -> str:
    if not rows:
        return ""
    width = max(max(len(row) for row in rows), 1)

    def render(cells: list[str]) -> str:
        padded = cells + [""] * (width - len(cells))
        return "| " + " | ".join(padded) + " |"

    lines = [render(rows[0]), "| " + " | ".join(["---"] * width) + " |"]
    lines.extend(render(row) for row in rows[1:])
    return "\n".join(lines)
