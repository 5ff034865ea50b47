"""
Note organizer - runs the AI actions a user can trigger on a note.

Each run is strictly sequential: tokenize attachments, call the backend,
merge, restore attachments, top up highlights. Results are returned to the
caller, which persists them; nothing here writes to storage.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from notelab.config import TASKS_HEADING
from notelab.llm.client import AIClient
from notelab.llm.contracts import RewriteMode, TaskSuggestion
from notelab.notes.document import NoteDocument, prepend_tasks
from notelab.observability.logging import get_logger
from notelab.observability.telemetry import counter, log_event, time_block
from notelab.pipeline.attachments import extract_tokens, restore_and_ensure, tokenize
from notelab.pipeline.composer import compose, resolved_title
from notelab.pipeline.highlights import apply_highlights_if_needed

logger = get_logger(__name__)


class RunCancelledError(Exception):
    """Raised when a run was cancelled; its partial output must be discarded."""


@dataclass
class OrganizeResult:
    title: str
    markdown: str
    tasks: list[TaskSuggestion] = field(default_factory=list)


@dataclass
class TodoResult:
    tasks: list[TaskSuggestion]
    markdown: str

    @property
    def changed(self) -> bool:
        return bool(self.tasks)


class NoteOrganizer:
    """Auto-organize, rewrite and extract-todos actions over one AI client.

    Args:
        client: Backend client used for every intent.
        cancelled: Optional predicate polled after each backend call.
    """

    def __init__(self, client: AIClient, cancelled: Callable[[], bool] | None = None):
        self.client = client
        self._cancelled = cancelled or (lambda: False)

    def _checkpoint(self, action: str) -> None:
        if self._cancelled():
            counter(f"pipeline.{action}.cancelled")
            logger.info("Pipeline %s cancelled; discarding result", action)
            raise RunCancelledError(action)

    def auto_organize(self, title: str, content: str, notebook_context: str | None = None) -> OrganizeResult:
        """Rewrite a note with its structured report merged in front of the body."""
        with time_block("pipeline.auto_organize.latency"):
            tokens = extract_tokens(NoteDocument.from_markdown(content))
            analysis = self.client.analyze_note(
                tokenize(content, tokens),
                title,
                notebook_context=notebook_context,
                protected_tokens=[t.token for t in tokens],
            )
            self._checkpoint("auto_organize")

            new_title = resolved_title(analysis.report.title if analysis.report else None, title)
            combined = compose(analysis.rewritten_body, analysis.report, analysis.tasks, new_title)
            restored = restore_and_ensure(combined, tokens)
            highlighted = apply_highlights_if_needed(restored, self.client.supplement_highlights)
            self._checkpoint("auto_organize")

        log_event(
            "pipeline.auto_organize.done",
            attachments=len(tokens),
            has_report=analysis.report is not None,
            chars=len(highlighted),
        )
        return OrganizeResult(new_title, highlighted, list(analysis.tasks))

    def rewrite(
        self,
        title: str,
        content: str,
        mode: RewriteMode | str,
        notebook_context: str | None = None,
    ) -> OrganizeResult:
        """Rewrite a note in one of the optimize/dedupe/expand modes."""
        mode = RewriteMode(mode)
        with time_block(f"pipeline.rewrite.{mode.value}.latency"):
            tokens = extract_tokens(NoteDocument.from_markdown(content))
            result = self.client.rewrite_note(
                tokenize(content, tokens),
                title,
                mode,
                notebook_context=notebook_context,
                protected_tokens=[t.token for t in tokens],
            )
            self._checkpoint("rewrite")

            new_title = resolved_title(result.title, title)
            restored = restore_and_ensure(result.markdown, tokens)
            highlighted = apply_highlights_if_needed(restored, self.client.supplement_highlights)
            self._checkpoint("rewrite")

        log_event("pipeline.rewrite.done", mode=mode.value, attachments=len(tokens), chars=len(highlighted))
        return OrganizeResult(new_title, highlighted)

    def extract_todos(self, content: str) -> TodoResult:
        """Extract tasks and put them as a checklist at the top of the note.

        When no tasks are found the content is returned unchanged.
        """
        tasks = self.client.extract_tasks(content)
        self._checkpoint("extract_todos")

        if not tasks:
            return TodoResult([], content)

        document = prepend_tasks(
            NoteDocument.from_markdown(content),
            [task.text for task in tasks],
            heading=TASKS_HEADING,
        )
        log_event("pipeline.extract_todos.done", task_count=len(tasks))
        return TodoResult(tasks, document.flatten_markdown())
