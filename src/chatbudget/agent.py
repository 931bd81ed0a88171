"""Chat orchestration: history, provider and tool calls."""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from .config import ChatBudgetConfig
from .core.messages import as_message_list
from .history.base import ChatHistory
from .observability.callbacks import CallbackManager, Notifier
from .observability.events import (
    CHAT_START,
    CHAT_STOP,
    ERROR,
    INFERENCE_START,
    INFERENCE_STOP,
    MESSAGE_SAVED,
    MESSAGE_SAVING,
    ErrorEvent,
    InferenceStart,
    InferenceStop,
    MessageSaved,
    MessageSaving,
)
from .providers.base import Provider
from .tools.definitions import ToolDefinition, build_tool_registry
from .tools.execution import ToolExecutor
from .types import AgentError, Message, ToolCallMessage, ToolRoundLimitError

logger = logging.getLogger(__name__)


class Agent:
    """
    Drives a conversation through a provider, following tool calls.

    Each call to ``chat_async`` adds its input to the history, asks the
    provider for a reply over the whole history and, while the reply is a
    ToolCallMessage, runs the requested tools and asks again with the call
    and its results appended. The first non tool-call reply is saved to the
    history and returned.

    One agent (and one history) per conversation: concurrent calls on the
    same instance interleave their history writes.

    Example:
        agent = Agent(
            history=InMemoryChatHistory(context_window=8_000),
            provider=LiteLLMProvider(model="gpt-4o-mini"),
            tools=[get_weather],
            instructions="You are a helpful assistant.",
        )
        reply = await agent.chat_async(UserMessage("Weather in Paris?"))
        print(reply.content)
    """

    def __init__(
        self,
        history: ChatHistory,
        provider: Provider,
        tools: Iterable[ToolDefinition | Callable[..., Any]] = (),
        instructions: str | None = None,
        notifier: Notifier | None = None,
        tool_executor: ToolExecutor | None = None,
        max_tool_rounds: int | None = None,
        config: ChatBudgetConfig | None = None,
    ):
        """
        Initialize the agent.

        Args:
            history: Message store for this conversation
            provider: Model provider
            tools: Tools offered to the model
            instructions: System prompt (defaults to config.instructions)
            notifier: Receives lifecycle events (no-op if not given)
            tool_executor: Runs tool calls (built from ``tools`` if not given)
            max_tool_rounds: Stop after this many tool rounds in one chat
                (defaults to config.max_tool_rounds; None = unlimited)
            config: Configuration defaults
        """
        self._config = config or ChatBudgetConfig()
        self._history = history
        self._provider = provider
        self._registry = build_tool_registry(tools)
        self._instructions = (
            instructions if instructions is not None else self._config.instructions
        )
        self._notifier: Notifier = notifier or CallbackManager()
        self._tool_executor = tool_executor or ToolExecutor(self._registry)
        self._max_tool_rounds = (
            max_tool_rounds if max_tool_rounds is not None else self._config.max_tool_rounds
        )
        self._summarized_request: Message | None = None

    async def _notify(self, event: str, *payload: Any) -> None:
        await self._notifier.notify(event, *payload)

    def _fill_history(self, messages: Sequence[Message]) -> None:
        for message in messages:
            self._history.add_message(message)

    def _resolve_tools(self) -> list[ToolDefinition]:
        return list(self._registry)

    async def _infer(
        self,
        messages: Sequence[Message],
        instructions: str | None,
        tools: list[ToolDefinition],
    ) -> Message:
        """Call the provider, reporting and wrapping any failure."""
        try:
            return await (
                self._provider.system_prompt(instructions)
                .set_tools(tools)
                .chat_async(messages)
            )
        except Exception as e:
            await self._notify(ERROR, ErrorEvent(e))
            logger.error(f"Provider call failed: {e}")
            raise AgentError(str(e), cause=e) from e

    async def chat_async(self, messages: Message | Iterable[Message]) -> Message:
        """
        Run the conversation until the model gives a final answer.

        Args:
            messages: One message or a batch of messages to add first

        Returns:
            The model's final (non tool-call) message

        Raises:
            AgentError: The provider failed
            ToolRoundLimitError: More tool rounds than ``max_tool_rounds``
        """
        batch = as_message_list(messages)
        rounds = 0

        while True:
            await self._notify(CHAT_START)

            self._fill_history(batch)
            tools = self._resolve_tools()

            last = self._history.get_last_message()
            await self._notify(INFERENCE_START, InferenceStart(last))

            response = await self._infer(self._history.get_messages(), self._instructions, tools)

            await self._notify(
                INFERENCE_STOP, InferenceStop(self._history.get_last_message(), response)
            )

            if not isinstance(response, ToolCallMessage):
                break

            rounds += 1
            if self._max_tool_rounds is not None and rounds > self._max_tool_rounds:
                error = ToolRoundLimitError(
                    f"Model requested tools for more than {self._max_tool_rounds} rounds"
                )
                await self._notify(ERROR, ErrorEvent(error))
                logger.error(str(error))
                raise error

            logger.debug(f"Tool round {rounds}: {', '.join(t.name for t in response.tools)}")
            tool_result = await self._tool_executor.execute(response)
            batch = [response, tool_result]

        await self._save_response(response)

        await self._notify(CHAT_STOP)
        return response

    async def _save_response(self, response: Message) -> None:
        await self._notify(MESSAGE_SAVING, MessageSaving(response))
        self._history.add_message(response)
        await self._notify(MESSAGE_SAVED, MessageSaved(response))

    async def summarize_async(self) -> Message:
        """
        Ask the model to summarize the pending summary request.

        The request is added to the history and the model answers it over the
        pre-summary snapshot, with the summary prompt as system prompt and no
        tools. The answer is saved to the history, so it stays in the context
        after the summarized turns were evicted.
        """
        request = self._history.get_last_message(is_summary=True)
        self._summarized_request = request

        await self._notify(CHAT_START)
        self._fill_history([request])
        await self._notify(INFERENCE_START, InferenceStart(request))

        response = await self._infer(
            self._history.get_pre_summary_history(),
            self._history.get_summary_prompt(),
            [],
        )

        await self._notify(INFERENCE_STOP, InferenceStop(request, response))
        await self._save_response(response)
        await self._notify(CHAT_STOP)
        return response

    def _has_pending_summary(self) -> bool:
        if not self._history.should_summarize():
            return False
        request = self._history.get_last_message(is_summary=True)
        if request is None or not request.content:
            return False
        # A snapshot is summarized once; the next overflow replaces it
        return request is not self._summarized_request

    async def chat_with_summary(self, messages: Message | Iterable[Message]) -> Message:
        """
        ``chat_async`` followed by a summary pass when one is pending.

        The summary text is attached to the returned message as ``summary``.
        """
        message = await self.chat_async(messages)

        if self._has_pending_summary():
            summary = await self.summarize_async()
            message.summary = summary.content

        return message

    def chat(self, messages: Message | Iterable[Message]) -> Message:
        """
        Synchronous version of ``chat_with_summary()``.

        Safe to call from inside a running event loop: the work then runs on
        a separate thread with its own loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor() as executor:
                future = executor.submit(asyncio.run, self.chat_with_summary(messages))
                return future.result()
        else:
            return asyncio.run(self.chat_with_summary(messages))

    @property
    def history(self) -> ChatHistory:
        return self._history

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def instructions(self) -> str | None:
        """System prompt sent with every inference."""
        return self._instructions

    @instructions.setter
    def instructions(self, value: str | None) -> None:
        self._instructions = value

    def __repr__(self) -> str:
        return (
            f"Agent(provider={type(self._provider).__name__}, "
            f"tools={len(self._registry)}, history={self._history!r})"
        )
