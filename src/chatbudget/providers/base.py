"""Provider interface used by the agent."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from ..tools.definitions import ToolDefinition, resolve_tool
from ..types import Message


class Provider(ABC):
    """
    Abstract base class for model providers.

    The agent configures a provider fluently before each inference:

        response = await (
            provider.system_prompt(instructions)
            .set_tools(tools)
            .chat_async(history.get_messages())
        )

    ``chat_async`` resolves to exactly one message; a ToolCallMessage means the
    model wants tools run before it answers. Retries and timeouts are the
    provider's concern.
    """

    def __init__(self) -> None:
        self._system: str | None = None
        self._tools: list[ToolDefinition] = []

    def system_prompt(self, prompt: str | None) -> "Provider":
        """Set the system instructions for subsequent calls."""
        self._system = prompt
        return self

    def set_tools(self, tools: Sequence[ToolDefinition | Callable[..., Any]]) -> "Provider":
        """Set the tools offered to the model for subsequent calls."""
        self._tools = [resolve_tool(t) for t in tools]
        return self

    @abstractmethod
    async def chat_async(self, messages: Sequence[Message]) -> Message:
        """
        Run one inference over ``messages``.

        Args:
            messages: Full conversation history, oldest first

        Returns:
            The model's reply (possibly a ToolCallMessage)
        """
        pass

    @property
    def tools(self) -> list[ToolDefinition]:
        return list(self._tools)

    @property
    def instructions(self) -> str | None:
        return self._system
