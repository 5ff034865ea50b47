"""
Pytest configuration for NoteLab tests

Provides a scripted fake backend so every intent can be exercised without
network access.
"""

from __future__ import annotations

import json

import pytest

from notelab.llm.client import AIClient
from notelab.observability.telemetry import reset_counters


class FakeBackend:
    """send_prompt stand-in that replays scripted responses in order."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    def queue(self, *responses) -> FakeBackend:
        for response in responses:
            self.responses.append(response if isinstance(response, (str, Exception)) else json.dumps(response))
        return self

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("FakeBackend called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    return AIClient(send_prompt=backend)


@pytest.fixture(autouse=True)
def _reset_telemetry():
    reset_counters()
    yield


@pytest.fixture
def make_report():
    """Factory for InsightReport wire dicts."""

    def _make(title="", summary="", sections=None, tables=None) -> dict:
        return {
            "title": title,
            "summary": summary,
            "sections": sections or [],
            "tables": tables or [],
        }

    return _make


@pytest.fixture
def make_task():
    """Factory for TaskSuggestion wire dicts."""

    def _make(text, due_date=None, priority="medium") -> dict:
        return {
            "text": text,
            "dueDate": due_date,
            "priority": priority,
            "confidence": 0.8,
            "sourceAnchor": {"paragraphIndex": 0},
        }

    return _make
