"""Pytest configuration and fixtures."""

import os
from collections.abc import Sequence
from typing import Any

import pytest

from chatbudget.observability import CallbackManager
from chatbudget.providers import Provider
from chatbudget.types import Message


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("CHATBUDGET_"):
            monkeypatch.delenv(key, raising=False)


class ScriptedProvider(Provider):
    """Provider that replays queued replies and records every call."""

    def __init__(self, replies: Sequence[Message | Exception] = ()):
        super().__init__()
        self.replies: list[Message | Exception] = list(replies)
        self.calls: list[dict[str, Any]] = []

    async def chat_async(self, messages: Sequence[Message]) -> Message:
        self.calls.append(
            {
                "messages": list(messages),
                "system": self._system,
                "tools": [t.name for t in self._tools],
            }
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class EventRecorder:
    """Collects (event, payload) pairs from a CallbackManager."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []
        self.callbacks = CallbackManager()
        self.callbacks.add("*", self)

    def __call__(self, event: str, *payload: Any) -> None:
        self.events.append((event, payload))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def env_file(tmp_path):
    """Create a temporary .env file."""
    path = tmp_path / ".env"
    path.write_text(
        """
CHATBUDGET_CONTEXT_WINDOW=1200
CHATBUDGET_SHOULD_SUMMARIZE=true
CHATBUDGET_DEFAULT_MODEL=gpt-4o-mini
CHATBUDGET_LOG_LEVEL=debug
"""
    )
    return path
