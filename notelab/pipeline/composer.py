"""
Insight composer.

Merges the backend's structured report (summary, sections, tables, tasks)
with its free-form rewritten body into one markdown document. The body is
cleaned of anything the report already says: sections under report
headings, embedded tables, and lines that repeat report text or repeat
each other.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from notelab.config import BODY_HEADING, BODY_LABEL_MIN_CHARS, SUMMARY_HEADING, TASKS_HEADING
from notelab.llm.contracts import InsightReport, ReportTable, TaskSuggestion
from notelab.notes.document import is_table_header

BULLET_MARKERS = ("- ", "* ")
CODE_FENCE = "```"


def resolved_title(report_title: str | None, fallback: str) -> str:
    """Trimmed report title when it is non-blank, else the fallback."""
    title = (report_title or "").strip()
    return title or fallback


def compose(
    rewritten_body: str,
    report: InsightReport | None,
    tasks: Sequence[TaskSuggestion],
    fallback_title: str,
) -> str:
    """Build the final note markdown from a report and the rewritten body.

    Parts are separated by blank lines and omitted when empty, in order:
    summary, sections, tables, tasks, processed body. Without a report the
    body is returned untouched.
    """
    if report is None:
        return rewritten_body

    parts: list[str] = []
    title = resolved_title(report.title, fallback_title)

    if report.summary.strip():
        parts.append(f"## {SUMMARY_HEADING}")
        parts.append(report.summary)

    seen_bullets: set[str] = set()
    for section in report.sections:
        heading = section.heading.strip()
        if heading:
            parts.append(f"## {heading}")
        parts.extend(p for p in section.paragraphs if p.strip())
        bullets: list[str] = []
        for bullet in section.bullets:
            cleaned = bullet.strip()
            if cleaned and cleaned not in seen_bullets:
                seen_bullets.add(cleaned)
                bullets.append(f"- {cleaned}")
        if bullets:
            parts.append("\n".join(bullets))

    for table in report.tables:
        table_title = table.title.strip()
        if table_title:
            parts.append(f"## {table_title}")
        rendered = render_table(table)
        if rendered:
            parts.append(rendered)
        if table.notes and table.notes.strip():
            parts.append(table.notes)

    if tasks:
        parts.append(f"## {TASKS_HEADING}")
        parts.append("\n".join(_task_line(task) for task in tasks))

    body = process_body(
        rewritten_body,
        title=title,
        strip_headings=_strip_headings(report),
        drop_lines=_drop_lines(report),
    )
    if body:
        if should_label_body(body):
            parts.append(f"## {BODY_HEADING}")
        parts.append(body)

    return "\n\n".join(parts)


def render_table(table: ReportTable) -> str:
    """Pipe table with a dash separator; short rows are padded with empty cells."""
    if not table.columns:
        return ""
    width = len(table.columns)
    lines = [
        "| " + " | ".join(table.columns) + " |",
        "| " + " | ".join(["---"] * width) + " |",
    ]
    for row in table.rows:
        cells = [row[i] if i < len(row) else "" for i in range(width)]
        lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines)


def should_label_body(body: str) -> bool:
    trimmed = body.strip()
    if not trimmed:
        return False
    if trimmed.splitlines()[0].strip().startswith("#"):
        return False
    return len(trimmed) >= BODY_LABEL_MIN_CHARS


def process_body(markdown: str, title: str, strip_headings: set[str], drop_lines: set[str]) -> str:
    body = replace_leading_h1(markdown, title)
    body = strip_heading_sections(body, strip_headings)
    body = strip_tables(body)
    body = dedupe_lines(body, drop_lines)
    return collapse_blank_lines(body)


def replace_leading_h1(markdown: str, title: str) -> str:
    """Rewrite the first non-blank line to `# title` when it is a level-1 heading.

    A leading code fence is never treated as a heading.
    """
    if not title.strip():
        return markdown
    lines = markdown.split("\n")
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("# "):
            lines[index] = f"# {title}"
            return "\n".join(lines)
        break
    return markdown


def parse_heading(line: str) -> tuple[int, str] | None:
    """(level, text) for `#`..`######` headings followed by a space."""
    if not line.startswith("#"):
        return None
    level = len(line) - len(line.lstrip("#"))
    if level > 6 or not line.startswith("#" * level + " "):
        return None
    return level, line[level + 1 :]


def fenced_lines(markdown: str) -> Iterator[tuple[str, bool]]:
    """Yield (line, in_code) pairs; fence marker lines count as code."""
    inside = False
    for line in markdown.split("\n"):
        if line.strip().startswith(CODE_FENCE):
            inside = not inside
            yield line, True
            continue
        yield line, inside


def strip_heading_sections(markdown: str, headings: set[str]) -> str:
    """Drop sections whose heading text is in `headings`, up to the next heading.

    Lines inside code fences are never read as headings, so a fenced block
    is kept or dropped whole with its section.
    """
    result: list[str] = []
    skipping = False
    for line, in_code in fenced_lines(markdown):
        heading = None if in_code else parse_heading(line.strip())
        if heading is not None:
            skipping = heading[1].strip() in headings
            if not skipping:
                result.append(line)
            continue
        if not skipping:
            result.append(line)
    return "\n".join(result)


def strip_tables(markdown: str) -> str:
    """Remove pipe tables: header, dash separator and the non-blank pipe rows after it."""
    lines = list(fenced_lines(markdown))
    result: list[str] = []
    index = 0
    while index < len(lines):
        line, in_code = lines[index]
        next_line = lines[index + 1][0] if index + 1 < len(lines) else ""
        if not in_code and is_table_header(line.strip(), next_line):
            index += 2
            while index < len(lines):
                candidate, candidate_in_code = lines[index]
                candidate = candidate.strip()
                if candidate_in_code or not candidate or "|" not in candidate:
                    break
                index += 1
            continue
        result.append(line)
        index += 1
    return "\n".join(result)


def dedupe_lines(markdown: str, drop_lines: set[str]) -> str:
    """Drop lines repeating report text, and repeated bullets/paragraphs in the body.

    Bullets are compared by the text after their marker, both against the
    report and against earlier bullets. Headings, blank lines and fenced
    code are kept.
    """
    result: list[str] = []
    seen_bullets: set[str] = set()
    seen_paragraphs: set[str] = set()

    for line, in_code in fenced_lines(markdown):
        if in_code:
            result.append(line)
            continue
        stripped = line.strip()
        if not stripped:
            result.append("")
            continue
        if stripped.startswith("#"):
            result.append(line)
            continue
        if stripped in drop_lines:
            continue
        if stripped.startswith(BULLET_MARKERS):
            key = stripped[2:].strip()
            if key and (key in drop_lines or key in seen_bullets):
                continue
            if key:
                seen_bullets.add(key)
            result.append(line)
            continue
        if stripped in seen_paragraphs:
            continue
        seen_paragraphs.add(stripped)
        result.append(line)

    return "\n".join(result)


def collapse_blank_lines(markdown: str) -> str:
    """Collapse runs of blank lines outside code fences and trim the result."""
    result: list[str] = []
    last_blank = False
    for line, in_code in fenced_lines(markdown):
        blank = not line.strip()
        if blank and not in_code:
            if not last_blank:
                result.append("")
        else:
            result.append(line)
        last_blank = blank and not in_code
    return "\n".join(result).strip()


def _task_line(task: TaskSuggestion) -> str:
    due = task.normalized_due_date
    if due:
        return f"- [ ] {task.text} ({due})"
    return f"- [ ] {task.text}"


def _strip_headings(report: InsightReport) -> set[str]:
    headings = {SUMMARY_HEADING, TASKS_HEADING, BODY_HEADING}
    headings.update(_non_blank(section.heading for section in report.sections))
    headings.update(_non_blank(table.title for table in report.tables))
    return headings


def _drop_lines(report: InsightReport) -> set[str]:
    lines = set(_non_blank([report.summary]))
    for section in report.sections:
        lines.update(_non_blank(section.paragraphs))
        lines.update(_non_blank(section.bullets))
    return lines


def _non_blank(values: Iterable[str]) -> list[str]:
    return [value.strip() for value in values if value.strip()]
