"""Shared types and exceptions for chatbudget."""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar


class MessageRole(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_CALL = "tool_call"
    TOOL_CALL_RESULT = "tool_call_result"


class AttachmentType(str, Enum):
    """Kind of attachment carried by a message."""

    IMAGE = "image"
    DOCUMENT = "document"


class AttachmentContentType(str, Enum):
    """How the attachment content is encoded."""

    BASE64 = "base64"
    URL = "url"


@dataclass(frozen=True)
class Usage:
    """Token usage recorded for a message."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, int]:
        return {"input_tokens": self.input_tokens, "output_tokens": self.output_tokens}


@dataclass(frozen=True)
class Tool:
    """
    A single tool invocation.

    Appears inside a ToolCallMessage before execution (no result) and inside
    a ToolCallResultMessage afterwards. ``call_id`` is the provider's
    correlation key and must survive persistence unchanged.
    """

    name: str
    description: str = ""
    inputs: dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None
    result: Any = None

    def with_result(self, result: Any) -> "Tool":
        """Return a copy of this invocation carrying ``result``."""
        return replace(self, result=result)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputs": self.inputs,
            "callId": self.call_id,
        }
        if self.result is not None:
            data["result"] = self.result
        return data


@dataclass
class Attachment:
    """Base class for binary or referenced message attachments."""

    type: ClassVar[AttachmentType]

    content: str
    content_type: AttachmentContentType
    media_type: str | None = None

    def __post_init__(self) -> None:
        self.content_type = AttachmentContentType(self.content_type)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "content": self.content,
            "content_type": self.content_type.value,
        }
        if self.media_type is not None:
            data["media_type"] = self.media_type
        return data


class Image(Attachment):
    """An image attachment."""

    type = AttachmentType.IMAGE


class Document(Attachment):
    """A document attachment (PDF, text, ...)."""

    type = AttachmentType.DOCUMENT


@dataclass
class Message:
    """A message in the chat history."""

    role: MessageRole
    content: str | None = None
    usage: Usage | None = None
    attachments: list[Attachment] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    # Filled in by Agent.chat() when a summary pass ran; never persisted
    summary: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.role = MessageRole(self.role)

    def add_attachment(self, attachment: Attachment) -> "Message":
        self.attachments.append(attachment)
        return self

    def add_metadata(self, key: str, value: Any) -> "Message":
        self.metadata[key] = value
        return self

    def with_usage(self, usage: Usage | None) -> "Message":
        """
        Return a copy of this message carrying ``usage``.

        Attachment and metadata containers are copied so the two messages can
        evolve independently.
        """
        clone = copy.copy(self)
        clone.usage = usage
        clone.attachments = list(self.attachments)
        clone.metadata = dict(self.metadata)
        return clone

    def to_dict(self) -> dict[str, Any]:
        """Convert to a persisted record."""
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        if self.attachments:
            data["attachments"] = [a.to_dict() for a in self.attachments]
        data.update(self.metadata)
        return data


class UserMessage(Message):
    """A message written by the user."""

    def __init__(self, content: str | None = None, **kwargs: Any):
        super().__init__(MessageRole.USER, content, **kwargs)


class AssistantMessage(Message):
    """A message produced by the model."""

    def __init__(self, content: str | None = None, **kwargs: Any):
        super().__init__(MessageRole.ASSISTANT, content, **kwargs)


@dataclass
class ToolCallMessage(Message):
    """A model response asking for one or more tools to be run."""

    tools: list[Tool] = field(default_factory=list)

    def __init__(
        self,
        content: str | None = None,
        tools: list[Tool] | None = None,
        **kwargs: Any,
    ):
        super().__init__(MessageRole.TOOL_CALL, content, **kwargs)
        self.tools = list(tools or [])

    def with_usage(self, usage: Usage | None) -> "Message":
        clone = super().with_usage(usage)
        clone.tools = list(self.tools)
        return clone

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["type"] = "tool_call"
        data["tools"] = [t.to_dict() for t in self.tools]
        return data


@dataclass
class ToolCallResultMessage(Message):
    """The results of executing the tools requested by a ToolCallMessage."""

    tools: list[Tool] = field(default_factory=list)

    def __init__(self, tools: list[Tool] | None = None, **kwargs: Any):
        super().__init__(MessageRole.TOOL_CALL_RESULT, None, **kwargs)
        self.tools = list(tools or [])

    def with_usage(self, usage: Usage | None) -> "Message":
        clone = super().with_usage(usage)
        clone.tools = list(self.tools)
        return clone

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["type"] = "tool_call_result"
        data["tools"] = [t.to_dict() for t in self.tools]
        return data


# Exceptions
class ChatBudgetError(Exception):
    """Base exception for chatbudget errors."""

    pass


class AgentError(ChatBudgetError):
    """The provider failed while the agent was waiting on an inference."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class ToolRoundLimitError(AgentError):
    """The provider kept requesting tools past the configured round limit."""

    pass


class CompletionError(ChatBudgetError):
    """Error during a provider completion request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RecordError(ChatBudgetError):
    """A persisted record could not be turned back into a message."""

    pass


class ConfigError(ChatBudgetError):
    """Configuration error."""

    pass
