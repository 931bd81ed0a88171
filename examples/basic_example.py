"""
Basic chatbudget Example
========================

This example demonstrates the core features of chatbudget:
- A token-budgeted chat history
- Tool calling through the agent loop
- Summaries captured before old turns are evicted
- Persisting a conversation to disk
- Lifecycle callbacks and structured logs

To run this example:
    uv run python examples/basic_example.py

Note: Requires OPENAI_API_KEY environment variable or .env file.
"""

import asyncio
import logging
import tempfile

from chatbudget import (
    Agent,
    CallbackManager,
    FileChatHistory,
    InMemoryChatHistory,
    LiteLLMProvider,
    StructuredLogger,
    UserMessage,
    create_logging_callbacks,
    load_env_files,
    tool,
)

MODEL = "gpt-4o-mini"

# ============================================================================
# Tool Definitions
# ============================================================================


@tool()
def get_weather(location: str, unit: str = "celsius") -> str:
    """Get current weather for a location.

    Args:
        location: City name
        unit: Temperature unit (celsius or fahrenheit)
    """
    temps = {"new york": 22, "london": 15, "tokyo": 28, "paris": 18}
    temp = temps.get(location.lower(), 20)
    if unit == "fahrenheit":
        temp = temp * 9 / 5 + 32
    return f"{location}: {temp}°{'F' if unit == 'fahrenheit' else 'C'}, partly cloudy"


@tool()
def calculate(expression: str) -> str:
    """Add or multiply two integers written as 'a + b' or 'a * b'."""
    left, op, right = expression.split()
    a, b = int(left), int(right)
    return str(a + b if op == "+" else a * b)


# ============================================================================
# Examples
# ============================================================================


async def tool_calling_example() -> None:
    print("\n=== Tool calling ===")
    agent = Agent(
        history=InMemoryChatHistory(context_window=8_000),
        provider=LiteLLMProvider(model=MODEL),
        tools=[get_weather, calculate],
        instructions="You are a helpful assistant. Use tools when they help.",
    )

    reply = await agent.chat_async(
        UserMessage("What's the weather in Tokyo, and what is 21 * 2?")
    )
    print(f"Assistant: {reply.content}")
    for message in agent.history.get_messages():
        print(f"  [{message.role.value}] usage={message.usage}")


async def summary_example() -> None:
    print("\n=== Summaries ===")
    # A tiny window so the third answer overflows and triggers a summary
    history = InMemoryChatHistory(context_window=400, should_summarize=True)
    agent = Agent(history, LiteLLMProvider(model=MODEL))

    for question in (
        "Name three rivers in Europe.",
        "Which of them is the longest?",
        "Tell me a fact about its delta.",
    ):
        reply = await agent.chat_with_summary(UserMessage(question))
        print(f"User: {question}\nAssistant: {reply.content}")
        if reply.summary:
            print(f"Summary of evicted turns:\n{reply.summary}")
        print(f"  free tokens: {history.get_free_memory()}")


async def persistence_example(directory: str) -> None:
    print("\n=== Persistence ===")
    agent = Agent(FileChatHistory(directory, key="demo"), LiteLLMProvider(model=MODEL))
    await agent.chat_async(UserMessage("My name is Ada. Please remember it."))

    # A new history for the same key restores the conversation
    restored = FileChatHistory(directory, key="demo")
    agent = Agent(restored, LiteLLMProvider(model=MODEL))
    reply = await agent.chat_async(UserMessage("What is my name?"))
    print(f"Assistant: {reply.content} ({len(restored)} messages on disk)")
    restored.flush_all()


async def observability_example(directory: str) -> None:
    print("\n=== Observability ===")
    logging.basicConfig(level=logging.INFO)
    callbacks = create_logging_callbacks(logging.getLogger("chatbudget.example"))
    structured = StructuredLogger(log_file=f"{directory}/events.jsonl", max_content_length=80)
    callbacks.add("*", structured)

    agent = Agent(
        InMemoryChatHistory(),
        LiteLLMProvider(model=MODEL),
        notifier=callbacks,
    )
    await agent.chat_async(UserMessage("Say hello in French."))
    structured.close()

    with open(f"{directory}/events.jsonl") as f:
        print(f"Logged {len(f.readlines())} events")


async def main() -> None:
    load_env_files()
    await tool_calling_example()
    await summary_example()
    with tempfile.TemporaryDirectory() as directory:
        await persistence_example(directory)
        await observability_example(directory)

    # The synchronous API also works from inside a running loop
    agent = Agent(InMemoryChatHistory(), LiteLLMProvider(model=MODEL, mock_response="Bonjour!"))
    print(f"\nSync reply: {agent.chat(UserMessage('Hello')).content}")


if __name__ == "__main__":
    asyncio.run(main())
