"""Lifecycle events emitted by the agent."""

from dataclasses import dataclass
from typing import Any

from ..types import Message

CHAT_START = "chat-start"
INFERENCE_START = "inference-start"
INFERENCE_STOP = "inference-stop"
MESSAGE_SAVING = "message-saving"
MESSAGE_SAVED = "message-saved"
CHAT_STOP = "chat-stop"
ERROR = "error"

EVENTS = (
    CHAT_START,
    INFERENCE_START,
    INFERENCE_STOP,
    MESSAGE_SAVING,
    MESSAGE_SAVED,
    CHAT_STOP,
    ERROR,
)


def _message_dict(message: Message | None) -> dict[str, Any] | None:
    return message.to_dict() if message is not None else None


@dataclass
class InferenceStart:
    """The provider is about to be called; ``message`` is the newest input."""

    message: Message | None

    def to_dict(self) -> dict[str, Any]:
        return {"message": _message_dict(self.message)}


@dataclass
class InferenceStop:
    """The provider answered ``message`` with ``response``."""

    message: Message | None
    response: Message

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": _message_dict(self.message),
            "response": _message_dict(self.response),
        }


@dataclass
class MessageSaving:
    message: Message

    def to_dict(self) -> dict[str, Any]:
        return {"message": _message_dict(self.message)}


@dataclass
class MessageSaved:
    message: Message

    def to_dict(self) -> dict[str, Any]:
        return {"message": _message_dict(self.message)}


@dataclass
class ErrorEvent:
    """The provider call failed."""

    exception: BaseException

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self.exception),
            "error_type": type(self.exception).__name__,
        }
