"""Chat history storage with token budgeting."""

from .base import ChatHistory
from .codec import deserialize_message, deserialize_messages, serialize_messages
from .file import FileChatHistory
from .memory import InMemoryChatHistory
from .summary import SUMMARY_HEADER, build_summary_message, render_summary_request

__all__ = [
    # Stores
    "ChatHistory",
    "InMemoryChatHistory",
    "FileChatHistory",
    # Codec
    "serialize_messages",
    "deserialize_messages",
    "deserialize_message",
    # Summaries
    "SUMMARY_HEADER",
    "build_summary_message",
    "render_summary_request",
]
