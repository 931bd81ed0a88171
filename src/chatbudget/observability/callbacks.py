"""Callback-based notifier for agent lifecycle events."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from .events import (
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

# Callbacks receive the event name followed by its payload
EventCallback = Callable[..., Awaitable[None] | None]

WILDCARD = "*"

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Anything the agent can report lifecycle events to."""

    async def notify(self, event: str, *payload: Any) -> None: ...


@dataclass
class CallbackManager:
    """
    Dispatches agent events to registered callbacks.

    Callbacks may be sync or async; they are called in registration order
    with ``(event, *payload)``. Register for ``"*"`` to receive every event.

    Example:
        callbacks = CallbackManager()

        @callbacks.on("inference-stop")
        async def log_stop(event, stop):
            print(f"Model replied: {stop.response.content}")

        # Or register directly
        callbacks.add("error", my_callback)
    """

    _callbacks: dict[str, list[EventCallback]] = field(default_factory=dict)

    def add(self, event: str, callback: EventCallback) -> None:
        """Add a callback for ``event`` (or ``"*"`` for all events)."""
        self._callbacks.setdefault(event, []).append(callback)

    def on(self, event: str) -> Callable[[EventCallback], EventCallback]:
        """Decorator to register a callback for ``event``."""

        def decorator(callback: EventCallback) -> EventCallback:
            self.add(event, callback)
            return callback

        return decorator

    async def notify(self, event: str, *payload: Any) -> None:
        """
        Emit an event to its callbacks, then to wildcard callbacks.

        Notification is fire-and-forget: a failing callback is logged and the
        remaining callbacks still run.
        """
        for callback in [*self._callbacks.get(event, []), *self._callbacks.get(WILDCARD, [])]:
            try:
                result = callback(event, *payload)
                if isinstance(result, Awaitable):
                    await result
            except Exception:
                logger.exception(f"Callback {callback!r} failed for event {event}")


def create_logging_callbacks(
    logger: logging.Logger,
    level: str = "INFO",
) -> CallbackManager:
    """
    Create a CallbackManager that reports agent events to a logger.

    Args:
        logger: A logging.Logger instance
        level: Log level to use for non-error events

    Returns:
        A configured CallbackManager
    """
    log_level = getattr(logging, level.upper())
    callbacks = CallbackManager()

    @callbacks.on(CHAT_START)
    def log_chat_start(event: str) -> None:
        logger.log(log_level, "Chat started")

    @callbacks.on(INFERENCE_START)
    def log_inference_start(event: str, start: InferenceStart) -> None:
        role = start.message.role.value if start.message else "none"
        logger.log(log_level, f"Inference started after {role} message")

    @callbacks.on(INFERENCE_STOP)
    def log_inference_stop(event: str, stop: InferenceStop) -> None:
        usage = stop.response.usage
        tokens = usage.total if usage else "N/A"
        logger.log(
            log_level,
            f"Inference finished: {type(stop.response).__name__}, tokens={tokens}",
        )

    @callbacks.on(MESSAGE_SAVING)
    def log_saving(event: str, saving: MessageSaving) -> None:
        logger.debug(f"Saving {saving.message.role.value} message")

    @callbacks.on(MESSAGE_SAVED)
    def log_saved(event: str, saved: MessageSaved) -> None:
        logger.debug(f"Saved {saved.message.role.value} message")

    @callbacks.on(CHAT_STOP)
    def log_chat_stop(event: str) -> None:
        logger.log(log_level, "Chat finished")

    @callbacks.on(ERROR)
    def log_error(event: str, error: ErrorEvent) -> None:
        logger.error(f"Inference failed: {error.exception}")

    return callbacks
