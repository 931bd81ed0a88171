"""Observability module for chatbudget."""

from .callbacks import CallbackManager, EventCallback, Notifier, create_logging_callbacks
from .events import (
    CHAT_START,
    CHAT_STOP,
    ERROR,
    EVENTS,
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
from .logging import StructuredLogger

__all__ = [
    # Notifier
    "Notifier",
    "CallbackManager",
    "EventCallback",
    "create_logging_callbacks",
    "StructuredLogger",
    # Events
    "EVENTS",
    "CHAT_START",
    "INFERENCE_START",
    "INFERENCE_STOP",
    "MESSAGE_SAVING",
    "MESSAGE_SAVED",
    "CHAT_STOP",
    "ERROR",
    "InferenceStart",
    "InferenceStop",
    "MessageSaving",
    "MessageSaved",
    "ErrorEvent",
]
