"""Token-budgeted chat history with FIFO eviction."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from ..config import DEFAULT_CONTEXT_WINDOW, DEFAULT_SUMMARY_PROMPT, ChatBudgetConfig
from ..types import AssistantMessage, Message, MessageRole, Usage
from .codec import deserialize_messages, serialize_messages
from .summary import build_summary_message

logger = logging.getLogger(__name__)


class ChatHistory(ABC):
    """
    Ordered conversation buffer bounded by a token budget.

    Every message added through ``add_message`` is charged against
    ``context_window`` using the usage it carries. Providers report input
    tokens as the size of the whole prompt, so only the marginal part (the
    reported value minus the input tokens already recorded) is stored. When
    the budget is exceeded the oldest messages are dropped until it fits
    again.

    With ``should_summarize`` enabled, an overflow caused by an assistant
    message first captures the whole conversation in a single summary
    request (see ``get_last_message(is_summary=True)``) so that it can be
    summarized before the evicted turns are lost.

    Subclasses provide persistence through ``_store_message``,
    ``remove_oldest_message`` and ``_clear``. An instance is meant to be
    owned by a single conversation; it does no locking.

    Example:
        history = InMemoryChatHistory(context_window=300)
        history.add_message(message)
        history.get_free_memory()
    """

    def __init__(
        self,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        should_summarize: bool = False,
        summary_prompt: str = DEFAULT_SUMMARY_PROMPT,
    ):
        """
        Initialize the history.

        Args:
            context_window: Token budget the retained messages may not exceed
            should_summarize: Build a summary snapshot before evicting
            summary_prompt: Default system prompt for the summarization pass
        """
        self._context_window = context_window
        self._should_summarize = should_summarize
        self._summary_prompt = summary_prompt
        self._history: list[Message] = []
        self._pre_summary_history: list[Message] = []

    @classmethod
    def from_config(cls, config: ChatBudgetConfig, **kwargs: Any) -> "ChatHistory":
        """Create a history using the budget settings of ``config``."""
        return cls(
            context_window=config.context_window,
            should_summarize=config.should_summarize,
            summary_prompt=config.summary_prompt,
            **kwargs,
        )

    # Backend hooks
    @abstractmethod
    def _store_message(self, message: Message) -> None:
        """Persist a newly accepted message."""
        pass

    @abstractmethod
    def remove_oldest_message(self) -> None:
        """Drop the oldest persisted message (the backend tracks which one)."""
        pass

    @abstractmethod
    def _clear(self) -> None:
        """Remove everything from the backend."""
        pass

    # Usage ledger
    def _marginal_usage(self, usage: Usage) -> Usage:
        previous_input = sum(
            m.usage.input_tokens for m in self._history if m.usage is not None
        )
        # May go negative when the provider's prompt shrank; kept as is.
        return Usage(
            input_tokens=usage.input_tokens - previous_input,
            output_tokens=usage.output_tokens,
        )

    def calculate_total_usage(self) -> int:
        """Total tokens recorded for the retained messages."""
        return sum(m.usage.total for m in self._history if m.usage is not None)

    def get_free_memory(self) -> int:
        """Remaining token budget. Negative only while over budget."""
        return self._context_window - self.calculate_total_usage()

    # Message store
    def add_message(self, message: Message) -> "ChatHistory":
        """
        Append a message, persist it and enforce the token budget.

        The stored entry is a copy carrying the marginal usage; ``message``
        itself is left untouched.

        Returns:
            This history, for chaining
        """
        if message.usage is not None:
            message = message.with_usage(self._marginal_usage(message.usage))

        self._history.append(message)
        self._store_message(message)

        self._cut_history_to_context_window()

        return self

    def get_messages(self) -> list[Message]:
        """Retained messages in conversation order (a copy of the list)."""
        return list(self._history)

    def get_last_message(self, is_summary: bool = False) -> Message | None:
        """
        Get the newest message.

        Args:
            is_summary: Return the pending summary request instead. Falls
                back to an empty assistant message when there is none.

        Returns:
            The message, or None if the history is empty
        """
        if is_summary:
            if self._pre_summary_history:
                return self._pre_summary_history[-1]
            return AssistantMessage("")
        return self._history[-1] if self._history else None

    def flush_all(self) -> "ChatHistory":
        """Clear the backend, the history and any pending summary request."""
        self._clear()
        self._history = []
        self._pre_summary_history = []
        logger.debug("Chat history flushed")
        return self

    # Eviction
    def _cut_history_to_context_window(self) -> None:
        if self.get_free_memory() >= 0:
            return

        if self._should_summarize and self._history[-1].role is MessageRole.ASSISTANT:
            self._format_pre_summary_messages()

        evicted = 0
        while self._history:
            self.remove_oldest_message()
            self._history.pop(0)
            evicted += 1
            if self.get_free_memory() >= 0:
                break

        logger.debug(
            f"Evicted {evicted} messages to fit context window "
            f"({self.calculate_total_usage()}/{self._context_window} tokens)"
        )
        if not self._history:
            logger.warning(
                f"Context window of {self._context_window} tokens exceeded by a "
                f"single message; history is now empty"
            )

    # Summarization
    def should_summarize(self) -> bool:
        return self._should_summarize

    def get_summary_prompt(self, prompt: str | None = None) -> str | None:
        """System prompt for the summarization pass, or None when disabled."""
        if not self._should_summarize:
            return None
        return prompt if prompt is not None else self._summary_prompt

    def get_pre_summary_history(self) -> list[Message]:
        return list(self._pre_summary_history)

    def _format_pre_summary_messages(self) -> None:
        self._pre_summary_history = [build_summary_message(self._history)]
        logger.debug(f"Captured summary request over {len(self._history)} messages")

    # Serialization
    def to_json(self) -> list[Message]:
        """The serializable form of the history: its ordered messages."""
        return self.get_messages()

    def to_records(self) -> list[dict[str, Any]]:
        """Retained messages as persisted records."""
        return serialize_messages(self._history)

    def _load_records(self, records: list[dict[str, Any]]) -> None:
        """Restore history from persisted records without re-charging usage."""
        self._history = deserialize_messages(records)

    @property
    def context_window(self) -> int:
        """Token budget of this history."""
        return self._context_window

    def __len__(self) -> int:
        return len(self._history)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(messages={len(self._history)}, "
            f"used={self.calculate_total_usage()}, context_window={self._context_window})"
        )
