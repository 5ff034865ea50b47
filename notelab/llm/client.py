"""
AI Client - one method per backend intent.

Every intent follows the same round trip: render a prompt, send it through
the injected `send_prompt` capability, strip code fences, and validate the
JSON against the intent's contract. Intents whose result can be
semantically incomplete (empty task list, missing report) get exactly one
more round trip; transport errors are never retried.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt

from notelab.config import LLM_LOG_PREVIEW_CHARS, LLM_SCHEMA_ATTEMPTS
from notelab.llm.contracts import (
    ConnectionsPayload,
    ConnectionSuggestion,
    ExtractTasksPayload,
    HighlightsPayload,
    HighlightSuggestion,
    InsightReport,
    NoteDigest,
    NoteInsightPayload,
    PartialInsightPayload,
    RecentFocusReport,
    RewriteMode,
    RewritePayload,
    TaskSuggestion,
)
from notelab.llm.decoding import clean_json_response, decode, try_decode
from notelab.llm.errors import DecodingFailedError, EmptyResponseError
from notelab.llm.prompts import PromptLoader, get_prompt_loader
from notelab.llm.providers import AISettings
from notelab.observability.logging import get_logger, preview
from notelab.observability.telemetry import counter, log_event

logger = get_logger(__name__)

SendPrompt = Callable[[str], str]
ResultT = TypeVar("ResultT")


@dataclass
class NoteAnalysis:
    """Result of the combined rewrite + structured analysis intent."""

    rewritten_body: str
    report: InsightReport | None = None
    tasks: list[TaskSuggestion] = field(default_factory=list)


@dataclass
class RewriteResult:
    title: str | None
    markdown: str


@dataclass
class FocusPayload:
    """Recent focus report, or the raw answer when it did not match the contract."""

    report: RecentFocusReport | None
    markdown: str | None = None


class AIClient:
    """Backend client for all NoteLab AI intents.

    Args:
        send_prompt: Text completion capability. Defaults to the configured
            provider transport (see notelab.llm.transport).
        settings: Provider settings used by the default transport.
        prompts: Prompt loader; the shared loader when omitted.
    """

    def __init__(
        self,
        send_prompt: SendPrompt | None = None,
        settings: AISettings | None = None,
        prompts: PromptLoader | None = None,
    ):
        self.settings = settings
        self.prompts = prompts or get_prompt_loader()
        self._send_prompt = send_prompt or self._default_send_prompt

    def _default_send_prompt(self, prompt: str) -> str:
        from notelab.llm.transport import send_prompt

        return send_prompt(prompt, self.settings)

    def _send(self, intent: str, prompt: str) -> str:
        counter(f"ai.{intent}.request")
        return self._send_prompt(prompt)

    def _with_one_retry(
        self,
        intent: str,
        attempt: Callable[[], ResultT],
        is_complete: Callable[[ResultT], bool],
    ) -> ResultT:
        """Run `attempt`, and run it once more if the result is incomplete.

        Exceptions from the first attempt propagate unchanged. If the second
        attempt cannot be decoded, the first attempt's partial result wins.
        """
        results: list[ResultT] = []

        def _attempt() -> ResultT:
            try:
                result = attempt()
            except DecodingFailedError:
                if not results:
                    raise
                counter(f"ai.{intent}.retry_decode_error")
                logger.warning("AI %s retry could not be decoded, keeping first result", intent)
                return results[0]
            results.append(result)
            return result

        def _log_retry(state: RetryCallState) -> None:
            counter(f"ai.{intent}.retry")
            logger.info("AI %s incomplete result, retrying once", intent)

        retrying = Retrying(
            stop=stop_after_attempt(LLM_SCHEMA_ATTEMPTS),
            retry=retry_if_result(lambda result: not is_complete(result)),
            before_sleep=_log_retry,
            retry_error_callback=lambda state: state.outcome.result(),
            reraise=True,
        )
        return retrying(_attempt)

    # --- Intents ---

    def extract_tasks(self, text: str) -> list[TaskSuggestion]:
        """Extract actionable tasks. An empty list triggers one retry."""
        prompt = self.prompts.get_extract_tasks_prompt(text)

        def attempt() -> list[TaskSuggestion]:
            response = self._send("extract_tasks", prompt)
            return self._decode_or_fail("extract_tasks", ExtractTasksPayload, response).tasks

        tasks = self._with_one_retry("extract_tasks", attempt, lambda result: bool(result))
        counter("ai.extract_tasks.success")
        log_event("ai.extract_tasks.result", task_count=len(tasks))
        return tasks

    def analyze_note(
        self,
        text: str,
        title: str,
        notebook_context: str | None = None,
        protected_tokens: Sequence[str] = (),
    ) -> NoteAnalysis:
        """Rewrite a note and produce its structured report.

        A response carrying only `formattedMarkdown` is a partial result
        (no report, no tasks) and triggers one retry.

        Raises:
            DecodingFailedError: If the first response matches neither shape.
        """
        prompt = self.prompts.get_note_insight_prompt(
            text, title, notebook_context=notebook_context, protected_tokens=protected_tokens
        )

        def attempt() -> NoteAnalysis:
            response = self._send("analyze_note", prompt)
            return self._decode_note_insight(response)

        analysis = self._with_one_retry("analyze_note", attempt, lambda result: result.report is not None)
        counter("ai.analyze_note.success")
        log_event(
            "ai.analyze_note.result",
            has_report=analysis.report is not None,
            task_count=len(analysis.tasks),
            body_chars=len(analysis.rewritten_body),
        )
        return analysis

    def _decode_note_insight(self, response: str) -> NoteAnalysis:
        full = try_decode(NoteInsightPayload, response)
        if full is not None:
            logger.info("AI analyze_note parsed report successfully")
            return NoteAnalysis(full.formatted_markdown, full.report, full.tasks or [])

        partial = try_decode(PartialInsightPayload, response)
        if partial is not None:
            counter("ai.analyze_note.partial")
            logger.info("AI analyze_note parsed partial data")
            return NoteAnalysis(partial.formatted_markdown)

        counter("ai.analyze_note.decode_error")
        logger.error(
            "AI analyze_note decode failed response=%s",
            preview(clean_json_response(response), LLM_LOG_PREVIEW_CHARS),
        )
        raise DecodingFailedError()

    def rewrite_note(
        self,
        text: str,
        title: str,
        mode: RewriteMode | str,
        notebook_context: str | None = None,
        protected_tokens: Sequence[str] = (),
    ) -> RewriteResult:
        """Rewrite a note in optimize, dedupe or expand mode. No retry.

        Raises:
            EmptyResponseError: If the returned markdown is blank.
        """
        mode = RewriteMode(mode)
        prompt = self.prompts.get_rewrite_prompt(
            text,
            title,
            mode,
            notebook_context=notebook_context,
            protected_tokens=protected_tokens,
        )
        response = self._send("rewrite_note", prompt)
        payload = self._decode_or_fail("rewrite_note", RewritePayload, response)

        markdown = payload.markdown.strip()
        if not markdown:
            counter("ai.rewrite_note.empty")
            raise EmptyResponseError()

        counter("ai.rewrite_note.success")
        log_event("ai.rewrite_note.result", mode=mode.value, markdown_chars=len(markdown))
        return RewriteResult(payload.title, markdown)

    def supplement_highlights(self, text: str, max_highlights: int) -> list[HighlightSuggestion]:
        """Ask for up to `max_highlights` phrases worth emphasizing. Empty is valid."""
        prompt = self.prompts.get_highlights_prompt(text, max_highlights)
        response = self._send("supplement_highlights", prompt)
        highlights = self._decode_or_fail("supplement_highlights", HighlightsPayload, response).highlights
        counter("ai.supplement_highlights.success")
        return highlights

    def semantic_connections(self, digests: Sequence[NoteDigest], limit: int) -> list[ConnectionSuggestion]:
        """Suggest related note pairs. Makes no call for empty input or limit <= 0."""
        if not digests or limit <= 0:
            return []
        prompt = self.prompts.get_connections_prompt(digests, limit)
        response = self._send("semantic_connections", prompt)
        connections = self._decode_or_fail("semantic_connections", ConnectionsPayload, response).connections
        counter("ai.semantic_connections.success")
        log_event("ai.semantic_connections.result", digest_count=len(digests), connection_count=len(connections))
        return connections

    def recent_focus_report(self, digests: Sequence[NoteDigest]) -> FocusPayload:
        """Build the recent focus report. Undecodable answers come back as raw markdown."""
        prompt = self.prompts.get_recent_focus_prompt(digests)
        response = self._send("recent_focus_report", prompt)

        report = try_decode(RecentFocusReport, response)
        if report is not None:
            counter("ai.recent_focus_report.success")
            logger.info("AI recent_focus_report parsed report successfully")
            return FocusPayload(report)

        counter("ai.recent_focus_report.raw")
        return FocusPayload(None, response)

    def _decode_or_fail(self, intent: str, model, response: str):
        try:
            return decode(model, response)
        except DecodingFailedError:
            counter(f"ai.{intent}.decode_error")
            logger.error(
                "AI %s decode failed response=%s",
                intent,
                preview(response, LLM_LOG_PREVIEW_CHARS),
            )
            raise
