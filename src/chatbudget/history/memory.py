"""Volatile chat history."""

from ..types import Message
from .base import ChatHistory


class InMemoryChatHistory(ChatHistory):
    """
    Chat history that lives only as long as the process.

    Example:
        history = InMemoryChatHistory(context_window=8_000, should_summarize=True)
    """

    def _store_message(self, message: Message) -> None:
        pass

    def remove_oldest_message(self) -> None:
        pass

    def _clear(self) -> None:
        pass
