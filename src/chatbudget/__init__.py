"""
chatbudget - Token-budgeted chat history and tool-calling agent loop.

Features:
- Chat histories bounded by a token context window with FIFO eviction
- Marginal input-token accounting for cumulative provider usage reports
- Optional conversation summary captured before eviction
- Async agent loop that follows tool calls until a final answer
- Volatile and JSON-file history backends with a typed record codec
- litellm provider with retries, lifecycle callbacks and structured logging
"""

from .agent import Agent
from .config import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_SUMMARY_PROMPT,
    ChatBudgetConfig,
    RetryConfig,
    load_env_files,
)
from .history import (
    ChatHistory,
    FileChatHistory,
    InMemoryChatHistory,
    deserialize_message,
    deserialize_messages,
    serialize_messages,
)
from .observability import (
    CallbackManager,
    ErrorEvent,
    InferenceStart,
    InferenceStop,
    MessageSaved,
    MessageSaving,
    Notifier,
    StructuredLogger,
    create_logging_callbacks,
)
from .providers import LiteLLMProvider, Provider
from .tools import (
    ToolDefinition,
    ToolExecutor,
    ToolRegistry,
    tool,
    tool_from_pydantic,
)
from .types import (
    AgentError,
    AssistantMessage,
    Attachment,
    AttachmentContentType,
    AttachmentType,
    ChatBudgetError,
    CompletionError,
    ConfigError,
    Document,
    Image,
    Message,
    MessageRole,
    RecordError,
    Tool,
    ToolCallMessage,
    ToolCallResultMessage,
    ToolRoundLimitError,
    Usage,
    UserMessage,
)

__version__ = "0.1.0"

__all__ = [
    # Agent
    "Agent",
    # Configuration
    "ChatBudgetConfig",
    "RetryConfig",
    "DEFAULT_CONTEXT_WINDOW",
    "DEFAULT_SUMMARY_PROMPT",
    "load_env_files",
    # History
    "ChatHistory",
    "InMemoryChatHistory",
    "FileChatHistory",
    "serialize_messages",
    "deserialize_messages",
    "deserialize_message",
    # Messages
    "Message",
    "MessageRole",
    "UserMessage",
    "AssistantMessage",
    "ToolCallMessage",
    "ToolCallResultMessage",
    "Usage",
    "Tool",
    "Attachment",
    "AttachmentType",
    "AttachmentContentType",
    "Image",
    "Document",
    # Providers
    "Provider",
    "LiteLLMProvider",
    # Tools
    "tool",
    "tool_from_pydantic",
    "ToolDefinition",
    "ToolRegistry",
    "ToolExecutor",
    # Observability
    "Notifier",
    "CallbackManager",
    "create_logging_callbacks",
    "StructuredLogger",
    "InferenceStart",
    "InferenceStop",
    "MessageSaving",
    "MessageSaved",
    "ErrorEvent",
    # Exceptions
    "ChatBudgetError",
    "AgentError",
    "ToolRoundLimitError",
    "CompletionError",
    "RecordError",
    "ConfigError",
]
