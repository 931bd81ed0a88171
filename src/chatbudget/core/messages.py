"""Message helpers and conversion to the provider wire format."""

import json
from collections.abc import Iterable
from typing import Any

from ..tools.definitions import format_tool_result
from ..types import (
    Attachment,
    AttachmentContentType,
    AttachmentType,
    Message,
    MessageRole,
    ToolCallMessage,
    ToolCallResultMessage,
)

# Roles the chat-completions format knows about; tool roles without their
# dedicated message type fall back to the side of the conversation they are on.
_WIRE_ROLES: dict[MessageRole, str] = {
    MessageRole.SYSTEM: "system",
    MessageRole.USER: "user",
    MessageRole.ASSISTANT: "assistant",
    MessageRole.TOOL_CALL: "assistant",
    MessageRole.TOOL_CALL_RESULT: "user",
}


def as_message_list(messages: Message | Iterable[Message]) -> list[Message]:
    """Accept a single message or any iterable of messages."""
    if isinstance(messages, Message):
        return [messages]
    return list(messages)


def _attachment_url(attachment: Attachment) -> str:
    if attachment.content_type is AttachmentContentType.BASE64:
        media_type = attachment.media_type or "application/octet-stream"
        return f"data:{media_type};base64,{attachment.content}"
    return attachment.content


def attachment_to_part(attachment: Attachment) -> dict[str, Any]:
    """Convert an attachment to a multimodal content part."""
    if attachment.type is AttachmentType.IMAGE:
        return {"type": "image_url", "image_url": {"url": _attachment_url(attachment)}}
    return {"type": "file", "file": {"file_data": _attachment_url(attachment)}}


def _content(message: Message) -> str | list[dict[str, Any]]:
    if not message.attachments:
        return message.content or ""

    parts: list[dict[str, Any]] = []
    if message.content:
        parts.append({"type": "text", "text": message.content})
    parts.extend(attachment_to_part(a) for a in message.attachments)
    return parts


def message_to_wire(message: Message) -> list[dict[str, Any]]:
    """
    Convert a message to chat-completions dicts.

    A ToolCallResultMessage expands into one ``tool`` message per result,
    every other message maps to exactly one dict.
    """
    if isinstance(message, ToolCallMessage):
        return [
            {
                "role": "assistant",
                "content": message.content or "",
                "tool_calls": [
                    {
                        "id": t.call_id,
                        "type": "function",
                        "function": {"name": t.name, "arguments": json.dumps(t.inputs)},
                    }
                    for t in message.tools
                ],
            }
        ]

    if isinstance(message, ToolCallResultMessage):
        return [
            {
                "role": "tool",
                "tool_call_id": t.call_id,
                "content": format_tool_result(t.result),
            }
            for t in message.tools
        ]

    return [{"role": _WIRE_ROLES[message.role], "content": _content(message)}]


def format_messages(
    messages: Iterable[Message],
    system: str | None = None,
) -> list[dict[str, Any]]:
    """
    Build the provider message list.

    Args:
        messages: Conversation history in order
        system: System prompt to prepend

    Returns:
        List of message dicts ready for litellm
    """
    result: list[dict[str, Any]] = []

    if system:
        result.append({"role": "system", "content": system})

    for message in messages:
        result.extend(message_to_wire(message))

    return result
