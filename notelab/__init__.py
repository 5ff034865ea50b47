"""NoteLab - AI-assisted note rewriting pipeline"""

from __future__ import annotations

__version__ = "0.1.0"


# Lazy imports so that importing string stages does not pull vendor SDKs
def __getattr__(name: str):
    """
    Lazy imports to avoid loading heavy dependencies when only importing lightweight modules.
    """
    if name == "AIClient":
        from notelab.llm.client import AIClient

        return AIClient

    if name == "NoteOrganizer":
        from notelab.pipeline.organize import NoteOrganizer

        return NoteOrganizer

    if name == "NoteDocument":
        from notelab.notes.document import NoteDocument

        return NoteDocument

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "AIClient",
    "NoteDocument",
    "NoteOrganizer",
]
