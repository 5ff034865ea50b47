"""
Prompt Management Module

Loads NoteLab prompt templates from the text files in this directory and
fills them in. Templates hold the fixed instruction text and JSON schemas;
the conditional rule blocks (short-text rules, attachment protection,
notebook context) are assembled here.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from notelab.config import SHORT_TEXT_CHARS, VERY_SHORT_TEXT_CHARS
from notelab.llm.contracts import NoteDigest, RewriteMode

# Get the prompts directory
PROMPTS_DIR = Path(__file__).parent

EMPTY_CONTENT = "<empty>"
RECENT_FOCUS_LABEL = "Last 3 notes"

_REWRITE_TARGET_RATIO = {
    RewriteMode.OPTIMIZE: 1.0,
    RewriteMode.DEDUPE: 0.6,
    RewriteMode.EXPAND: 1.7,
}

_REWRITE_COMMON_RULES = (
    "\n[Formatting]\n"
    "- Code, commands and configuration use fenced code blocks: ```code```\n"
    "- Highlight syntax: ==color:text==, colors: yellow/green/blue/pink/orange/purple\n"
    "- Keep the title unless it needs improving; then return it in title, otherwise null\n"
)


class PromptLoader:
    """Load and cache prompt templates from files"""

    def __init__(self):
        self._cache: dict[str, str] = {}

    def load_prompt(self, prompt_name: str) -> str:
        """
        Load a prompt template from file.

        Args:
            prompt_name: Name of the prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        if prompt_name not in self._cache:
            prompt_path = PROMPTS_DIR / f"{prompt_name}.txt"

            if not prompt_path.exists():
                raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

            with open(prompt_path, encoding="utf-8") as f:
                self._cache[prompt_name] = f.read()

        return self._cache[prompt_name]

    def get_note_insight_prompt(
        self,
        text: str,
        title: str,
        notebook_context: str | None = None,
        protected_tokens: Sequence[str] = (),
    ) -> str:
        """
        Build the combined rewrite + structured analysis prompt.

        Short notes (<200 chars) get rules against padding; very short notes
        (<40 chars) are limited to light cleanup. Attachment tokens, when
        present, are listed with rules to keep them verbatim and in place.
        """
        trimmed = text.strip()
        char_count = len(trimmed)

        rules: list[str] = []
        if char_count < SHORT_TEXT_CHARS:
            rules.append(
                "14) The text is short: do not expand or speculate; only clarify wording and add light structure."
            )
            rules.append(
                "15) The text is short: report.tables must be empty unless the text explicitly contains "
                "a table, field list, timeline or comparison."
            )
        if char_count < VERY_SHORT_TEXT_CHARS:
            rules.append(
                "16) The text is very short: limit changes to punctuation, line breaks and bullets; "
                "do not write a long summary."
            )
        if protected_tokens:
            rules.append(
                "17) The text contains attachment placeholder tokens standing for images or files in the "
                "note. Keep them verbatim; never delete, rewrite or move them into code blocks."
            )
            rules.append("18) Keep these tokens in their original relative positions.")
            rules.append(f"Attachment tokens: {', '.join(protected_tokens)}")

        context_block = ""
        if notebook_context and notebook_context.strip():
            context_block = (
                "Notebook background (use it to understand the note):\n" f"{notebook_context}\n\n"
            )

        template = self.load_prompt("note_insight")
        return template.format(
            conditional_rules="".join(f"{rule}\n" for rule in rules),
            context_block=context_block,
            title=title,
            char_count=char_count,
            content=trimmed or EMPTY_CONTENT,
        )

    def get_rewrite_prompt(
        self,
        text: str,
        title: str,
        mode: RewriteMode,
        notebook_context: str | None = None,
        protected_tokens: Sequence[str] = (),
    ) -> str:
        """Build the rewrite prompt for one of the optimize/dedupe/expand modes."""
        mode = RewriteMode(mode)
        trimmed = text.strip()
        char_count = len(trimmed)

        attachment_block = ""
        if protected_tokens:
            attachment_block = (
                "\n[Attachments] The text contains attachment placeholder tokens; keep them verbatim:\n"
                f"{', '.join(protected_tokens)}\n"
            )

        context_block = ""
        if notebook_context and notebook_context.strip():
            label = (
                "Notebook background - use it when expanding"
                if mode == RewriteMode.EXPAND
                else "Notebook background"
            )
            context_block = f"\n[{label}]\n{notebook_context}\n"

        template = self.load_prompt(f"rewrite_{mode.value}")
        return template.format(
            char_count=char_count,
            target_chars=int(char_count * _REWRITE_TARGET_RATIO[mode]),
            common_rules=_REWRITE_COMMON_RULES,
            attachment_block=attachment_block,
            context_block=context_block,
            title=title,
            content=trimmed or EMPTY_CONTENT,
        )

    def get_extract_tasks_prompt(self, text: str) -> str:
        return self.load_prompt("extract_tasks").format(content=text)

    def get_highlights_prompt(self, text: str, max_highlights: int) -> str:
        trimmed = text.strip()
        return self.load_prompt("highlights").format(
            max_highlights=max_highlights,
            content=trimmed or EMPTY_CONTENT,
        )

    def get_connections_prompt(self, digests: Iterable[NoteDigest], limit: int) -> str:
        return self.load_prompt("connections").format(limit=limit, digests=render_digests(digests))

    def get_recent_focus_prompt(self, digests: Iterable[NoteDigest]) -> str:
        return self.load_prompt("recent_focus").format(
            time_range_label=RECENT_FOCUS_LABEL,
            digests=render_digests(digests),
        )

    def reload(self) -> None:
        """Clear cache and reload prompts from disk"""
        self._cache.clear()


def render_digests(digests: Iterable[NoteDigest]) -> str:
    """Render digests as the numbered "Note N:" blocks the digest prompts expect."""
    lines: list[str] = []
    for index, digest in enumerate(digests, start=1):
        lines.append(f"Note {index}:")
        lines.append(f"- noteId: {digest.note_id}")
        lines.append(f"- noteTitle: {digest.note_title}")
        lines.append(f"- notebookTitle: {digest.notebook_title}")
        lines.append(f"- createdAt: {digest.created_at}")
        if digest.headings:
            lines.append(f"- headings: {'; '.join(digest.headings)}")
        if digest.bullets:
            lines.append(f"- bullets: {'; '.join(digest.bullets)}")
        if digest.snippet:
            lines.append(f"- snippet: {digest.snippet}")
        lines.append("")
    return "\n".join(lines)


# Global instance
_loader = PromptLoader()


def get_prompt_loader() -> PromptLoader:
    return _loader


def reload_prompts() -> None:
    """Reload all prompts from disk (convenience function)"""
    _loader.reload()
