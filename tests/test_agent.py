"""Tests for the Agent chat loop."""

import asyncio

import pytest

from chatbudget import (
    Agent,
    AgentError,
    AssistantMessage,
    ChatBudgetConfig,
    CompletionError,
    InMemoryChatHistory,
    Tool,
    ToolCallMessage,
    ToolCallResultMessage,
    ToolExecutor,
    ToolRoundLimitError,
    Usage,
    UserMessage,
    tool,
)
from chatbudget.history import SUMMARY_HEADER
from chatbudget.observability import ErrorEvent, InferenceStart, InferenceStop, MessageSaved

from conftest import ScriptedProvider


@tool()
def get_weather(location: str) -> str:
    """Get the current weather for a location."""
    return f"Sunny in {location}"


def _weather_call(call_id: str = "call_1", location: str = "Paris") -> ToolCallMessage:
    return ToolCallMessage(tools=[Tool("get_weather", inputs={"location": location}, call_id=call_id)])


# ============================================================================
# Plain chat
# ============================================================================


class TestChat:
    """Tests for a chat turn without tools."""

    async def test_returns_reply_and_stores_it(self):
        history = InMemoryChatHistory()
        provider = ScriptedProvider([AssistantMessage("Hi there")])
        agent = Agent(history, provider)

        reply = await agent.chat_async(UserMessage("Hello!"))

        assert reply.content == "Hi there"
        assert [m.content for m in history.get_messages()] == ["Hello!", "Hi there"]

    async def test_provider_sees_history_and_instructions(self):
        history = InMemoryChatHistory()
        history.add_message(UserMessage("earlier"))
        provider = ScriptedProvider([AssistantMessage("ok")])
        agent = Agent(history, provider, instructions="Be brief.")

        await agent.chat_async(UserMessage("now"))

        call = provider.calls[0]
        assert [m.content for m in call["messages"]] == ["earlier", "now"]
        assert call["system"] == "Be brief."

    async def test_accepts_message_batch(self):
        history = InMemoryChatHistory()
        provider = ScriptedProvider([AssistantMessage("ok")])
        agent = Agent(history, provider)

        await agent.chat_async([UserMessage("one"), UserMessage("two")])

        assert [m.content for m in provider.calls[0]["messages"]] == ["one", "two"]

    async def test_instructions_from_config(self):
        provider = ScriptedProvider([AssistantMessage("ok")])
        agent = Agent(
            InMemoryChatHistory(),
            provider,
            config=ChatBudgetConfig(instructions="From config"),
        )
        assert agent.instructions == "From config"

        agent.instructions = "Changed"
        await agent.chat_async(UserMessage("x"))
        assert provider.calls[0]["system"] == "Changed"

    async def test_reply_usage_is_made_marginal_in_history(self):
        history = InMemoryChatHistory()
        reply = AssistantMessage("ok", usage=Usage(120, 30))
        agent = Agent(history, ScriptedProvider([reply]))

        await agent.chat_async(UserMessage("x", usage=Usage(100, 0)))

        assert history.get_last_message().usage == Usage(20, 30)
        assert reply.usage == Usage(120, 30)

    async def test_event_order(self, recorder):
        agent = Agent(
            InMemoryChatHistory(),
            ScriptedProvider([AssistantMessage("Hi")]),
            notifier=recorder.callbacks,
        )

        await agent.chat_async(UserMessage("Hello!"))

        assert recorder.names == [
            "chat-start",
            "inference-start",
            "inference-stop",
            "message-saving",
            "message-saved",
            "chat-stop",
        ]

    async def test_event_payloads(self, recorder):
        agent = Agent(
            InMemoryChatHistory(),
            ScriptedProvider([AssistantMessage("Hi")]),
            notifier=recorder.callbacks,
        )

        await agent.chat_async(UserMessage("Hello!"))

        payloads = dict(recorder.events)
        (start,) = payloads["inference-start"]
        assert isinstance(start, InferenceStart)
        assert start.message.content == "Hello!"

        (stop,) = payloads["inference-stop"]
        assert isinstance(stop, InferenceStop)
        assert stop.response.content == "Hi"

        (saved,) = payloads["message-saved"]
        assert isinstance(saved, MessageSaved)
        assert saved.message.content == "Hi"
        assert payloads["chat-start"] == ()


# ============================================================================
# Tool calls
# ============================================================================


class TestToolCalls:
    """Tests for the tool-call loop."""

    async def test_tool_round_then_answer(self):
        history = InMemoryChatHistory()
        provider = ScriptedProvider([_weather_call(), AssistantMessage("It's sunny.")])
        agent = Agent(history, provider, tools=[get_weather])

        reply = await agent.chat_async(UserMessage("Weather in Paris?"))

        assert reply.content == "It's sunny."
        messages = history.get_messages()
        assert [type(m) for m in messages] == [
            UserMessage,
            ToolCallMessage,
            ToolCallResultMessage,
            AssistantMessage,
        ]
        result = messages[2].tools[0]
        assert result.call_id == "call_1"
        assert result.result == "Sunny in Paris"

    async def test_second_inference_sees_call_and_result(self):
        provider = ScriptedProvider([_weather_call(), AssistantMessage("done")])
        agent = Agent(InMemoryChatHistory(), provider, tools=[get_weather])

        await agent.chat_async(UserMessage("Weather?"))

        second = provider.calls[1]["messages"]
        assert isinstance(second[-2], ToolCallMessage)
        assert isinstance(second[-1], ToolCallResultMessage)
        assert provider.calls[0]["tools"] == ["get_weather"]

    async def test_multiple_rounds(self):
        provider = ScriptedProvider(
            [
                _weather_call("c1", "Paris"),
                _weather_call("c2", "Rome"),
                AssistantMessage("Both sunny"),
            ]
        )
        history = InMemoryChatHistory()
        agent = Agent(history, provider, tools=[get_weather])

        await agent.chat_async(UserMessage("Paris and Rome?"))

        assert len(provider.calls) == 3
        assert len(history) == 6

    async def test_tool_round_events(self, recorder):
        agent = Agent(
            InMemoryChatHistory(),
            ScriptedProvider([_weather_call(), AssistantMessage("done")]),
            tools=[get_weather],
            notifier=recorder.callbacks,
        )

        await agent.chat_async(UserMessage("Weather?"))

        assert recorder.names == [
            "chat-start",
            "inference-start",
            "inference-stop",
            "chat-start",
            "inference-start",
            "inference-stop",
            "message-saving",
            "message-saved",
            "chat-stop",
        ]

    async def test_unknown_tool_is_reported_to_model(self):
        call = ToolCallMessage(tools=[Tool("missing", call_id="c1")])
        history = InMemoryChatHistory()
        agent = Agent(history, ScriptedProvider([call, AssistantMessage("sorry")]))

        await agent.chat_async(UserMessage("x"))

        result = history.get_messages()[2].tools[0]
        assert result.result == "Error: Unknown tool: missing"

    async def test_max_tool_rounds(self):
        provider = ScriptedProvider([_weather_call("c1"), _weather_call("c2")])
        agent = Agent(InMemoryChatHistory(), provider, tools=[get_weather], max_tool_rounds=1)

        with pytest.raises(ToolRoundLimitError):
            await agent.chat_async(UserMessage("loop"))

        assert len(provider.calls) == 2

    async def test_max_tool_rounds_emits_error(self, recorder):
        agent = Agent(
            InMemoryChatHistory(),
            ScriptedProvider([_weather_call()]),
            tools=[get_weather],
            notifier=recorder.callbacks,
            max_tool_rounds=0,
        )

        with pytest.raises(ToolRoundLimitError) as exc_info:
            await agent.chat_async(UserMessage("loop"))

        assert recorder.names[-2:] == ["inference-stop", "error"]
        (event,) = recorder.events[-1][1]
        assert event.exception is exc_info.value

    async def test_max_tool_rounds_from_config(self):
        provider = ScriptedProvider([_weather_call()])
        agent = Agent(
            InMemoryChatHistory(),
            provider,
            tools=[get_weather],
            config=ChatBudgetConfig(max_tool_rounds=0),
        )

        with pytest.raises(ToolRoundLimitError):
            await agent.chat_async(UserMessage("loop"))

    async def test_custom_tool_executor(self):
        class FixedExecutor(ToolExecutor):
            async def execute(self, message):
                return ToolCallResultMessage([t.with_result("fixed") for t in message.tools])

        history = InMemoryChatHistory()
        agent = Agent(
            history,
            ScriptedProvider([_weather_call(), AssistantMessage("ok")]),
            tools=[get_weather],
            tool_executor=FixedExecutor(),
        )

        await agent.chat_async(UserMessage("x"))

        assert history.get_messages()[2].tools[0].result == "fixed"


# ============================================================================
# Errors
# ============================================================================


class TestErrors:
    """Tests for provider failures."""

    async def test_provider_error_is_wrapped(self, recorder):
        failure = CompletionError("Rate limit exceeded", status_code=429)
        agent = Agent(
            InMemoryChatHistory(),
            ScriptedProvider([failure]),
            notifier=recorder.callbacks,
        )

        with pytest.raises(AgentError, match="Rate limit exceeded") as exc_info:
            await agent.chat_async(UserMessage("x"))

        assert exc_info.value.cause is failure
        assert exc_info.value.__cause__ is failure
        assert recorder.names[-1] == "error"
        (event,) = recorder.events[-1][1]
        assert isinstance(event, ErrorEvent)
        assert event.exception is failure
        assert "chat-stop" not in recorder.names

    async def test_input_stays_in_history_after_error(self):
        history = InMemoryChatHistory()
        agent = Agent(history, ScriptedProvider([RuntimeError("boom")]))

        with pytest.raises(AgentError):
            await agent.chat_async(UserMessage("x"))

        assert [m.content for m in history.get_messages()] == ["x"]


# ============================================================================
# Summaries
# ============================================================================


class TestSummaries:
    """Tests for the summary pass."""

    def _overflowing_agent(self, replies, notifier=None, **kwargs):
        history = InMemoryChatHistory(context_window=300, should_summarize=True, **kwargs)
        history.add_message(UserMessage("Hello!", usage=Usage(100, 200)))
        provider = ScriptedProvider(replies)
        return Agent(history, provider, notifier=notifier), history, provider

    async def test_chat_with_summary_attaches_summary(self):
        agent, history, provider = self._overflowing_agent(
            [
                AssistantMessage("Long answer", usage=Usage(200, 300)),
                AssistantMessage("- greeted the assistant"),
            ]
        )

        reply = await agent.chat_with_summary(UserMessage("Tell me more"))

        assert reply.content == "Long answer"
        assert reply.summary == "- greeted the assistant"

        summary_call = provider.calls[1]
        assert summary_call["tools"] == []
        assert summary_call["system"] == history.get_summary_prompt()
        (request,) = summary_call["messages"]
        assert request.content.startswith(SUMMARY_HEADER)

    async def test_summary_is_kept_in_history(self):
        """The evicted turns survive in the history as the summary exchange."""
        agent, history, _ = self._overflowing_agent(
            [
                AssistantMessage("overflow", usage=Usage(200, 300)),
                AssistantMessage("- summary"),
            ]
        )

        await agent.chat_with_summary(UserMessage("Tell me more"))

        request, summary = history.get_messages()
        assert request.content.startswith(SUMMARY_HEADER)
        assert request.content.endswith("assistant: overflow")
        assert summary.content == "- summary"

    async def test_next_turn_sees_summary(self):
        agent, _, provider = self._overflowing_agent(
            [
                AssistantMessage("overflow", usage=Usage(200, 300)),
                AssistantMessage("- summary"),
                AssistantMessage("follow-up"),
            ]
        )

        await agent.chat_with_summary(UserMessage("Tell me more"))
        reply = await agent.chat_with_summary(UserMessage("And then?"))

        assert reply.summary is None
        assert len(provider.calls) == 3
        assert [m.content for m in provider.calls[2]["messages"]][1:] == [
            "- summary",
            "And then?",
        ]

    async def test_custom_summary_prompt(self):
        agent, _, provider = self._overflowing_agent(
            [AssistantMessage("a", usage=Usage(200, 300)), AssistantMessage("s")],
            summary_prompt="Summarize tersely",
        )

        await agent.chat_with_summary(UserMessage("x"))

        assert provider.calls[1]["system"] == "Summarize tersely"

    async def test_no_summary_without_overflow(self):
        history = InMemoryChatHistory(should_summarize=True)
        provider = ScriptedProvider([AssistantMessage("short")])
        agent = Agent(history, provider)

        reply = await agent.chat_with_summary(UserMessage("x"))

        assert reply.summary is None
        assert len(provider.calls) == 1

    async def test_no_summary_when_disabled(self):
        history = InMemoryChatHistory(context_window=300)
        history.add_message(UserMessage("Hello!", usage=Usage(100, 200)))
        provider = ScriptedProvider([AssistantMessage("a", usage=Usage(200, 300))])

        reply = await Agent(history, provider).chat_with_summary(UserMessage("x"))

        assert reply.summary is None
        assert len(provider.calls) == 1

    async def test_summarize_events(self, recorder):
        agent, _, _ = self._overflowing_agent(
            [AssistantMessage("a", usage=Usage(200, 300)), AssistantMessage("s")],
            notifier=recorder.callbacks,
        )

        await agent.chat_with_summary(UserMessage("x"))

        assert recorder.names[-6:] == [
            "chat-start",
            "inference-start",
            "inference-stop",
            "message-saving",
            "message-saved",
            "chat-stop",
        ]
        saved = recorder.events[-2][1][0]
        assert saved.message.content == "s"


class TestSyncChat:
    """Tests for the synchronous wrapper."""

    def test_chat(self):
        agent = Agent(InMemoryChatHistory(), ScriptedProvider([AssistantMessage("Hi")]))
        reply = agent.chat(UserMessage("Hello!"))
        assert reply.content == "Hi"

    async def test_chat_inside_running_loop(self):
        agent = Agent(InMemoryChatHistory(), ScriptedProvider([AssistantMessage("Hi")]))
        assert asyncio.get_running_loop().is_running()
        reply = agent.chat(UserMessage("Hello!"))
        assert reply.content == "Hi"

    def test_chat_with_summary(self):
        history = InMemoryChatHistory(context_window=300, should_summarize=True)
        history.add_message(UserMessage("Hello!", usage=Usage(100, 200)))
        agent = Agent(
            history,
            ScriptedProvider(
                [AssistantMessage("a", usage=Usage(200, 300)), AssistantMessage("bullets")]
            ),
        )

        reply = agent.chat(UserMessage("x"))

        assert reply.summary == "bullets"

    def test_repr(self):
        agent = Agent(InMemoryChatHistory(), ScriptedProvider(), tools=[get_weather])
        assert repr(agent).startswith("Agent(provider=ScriptedProvider, tools=1")
