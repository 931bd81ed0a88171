"""Core message handling."""

from .messages import as_message_list, attachment_to_part, format_messages, message_to_wire

__all__ = ["as_message_list", "attachment_to_part", "format_messages", "message_to_wire"]
