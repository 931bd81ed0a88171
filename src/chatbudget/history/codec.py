"""Conversion between persisted records and typed messages.

A record is the dict form produced by ``Message.to_dict()``:

    {
        "type": "tool_call" | "tool_call_result",   # optional discriminant
        "role": "user",
        "content": "Hello!",
        "usage": {"input_tokens": 10, "output_tokens": 20},
        "attachments": [{"type": "image", "content": "...", "content_type": "url"}],
        "tools": [{"name": ..., "description": ..., "inputs": {...}, "callId": ...}],
        ...                                          # anything else is metadata
    }

Unknown roles, attachment types or content types are treated as corruption
and raise ``RecordError`` rather than being defaulted.
"""

from collections.abc import Iterable
from typing import Any

from ..types import (
    AssistantMessage,
    Attachment,
    AttachmentContentType,
    AttachmentType,
    Document,
    Image,
    Message,
    MessageRole,
    RecordError,
    Tool,
    ToolCallMessage,
    ToolCallResultMessage,
    Usage,
    UserMessage,
)

TOOL_CALL = "tool_call"
TOOL_CALL_RESULT = "tool_call_result"

# Keys consumed before the remaining ones are read as metadata
_PLAIN_KEYS = frozenset({"role", "content"})
_TOOL_KEYS = frozenset({"type", "role", "content", "tools"})

_ATTACHMENT_CLASSES: dict[AttachmentType, type[Attachment]] = {
    AttachmentType.IMAGE: Image,
    AttachmentType.DOCUMENT: Document,
}


def serialize_messages(messages: Iterable[Message]) -> list[dict[str, Any]]:
    """Convert messages to their persisted record form, preserving order."""
    return [message.to_dict() for message in messages]


def deserialize_messages(records: Iterable[dict[str, Any]]) -> list[Message]:
    """Rebuild typed messages from a list of persisted records."""
    return [deserialize_message(record) for record in records]


def deserialize_message(record: dict[str, Any]) -> Message:
    """Rebuild a single message, dispatching on its ``type`` discriminant."""
    if not isinstance(record, dict):
        raise RecordError(f"Message record must be a dict, got {type(record).__name__}")

    kind = record.get("type")
    if kind == TOOL_CALL:
        message: Message = _deserialize_tool_call(record)
    elif kind == TOOL_CALL_RESULT:
        message = _deserialize_tool_call_result(record)
    else:
        message = _deserialize_plain(record)
        _deserialize_meta(record, message, _PLAIN_KEYS)
        return message

    _deserialize_meta(record, message, _TOOL_KEYS)
    return message


def _parse_role(record: dict[str, Any]) -> MessageRole:
    if "role" not in record:
        raise RecordError(f"Message record has no role: {record!r}")
    try:
        return MessageRole(record["role"])
    except ValueError as e:
        raise RecordError(f"Unknown message role: {record['role']!r}") from e


def _deserialize_plain(record: dict[str, Any]) -> Message:
    role = _parse_role(record)
    content = record.get("content")

    if role is MessageRole.USER:
        return UserMessage(content)
    if role is MessageRole.ASSISTANT:
        return AssistantMessage(content)
    return Message(role, content)


def _tool_records(record: dict[str, Any]) -> list[dict[str, Any]]:
    tools = record.get("tools")
    if not isinstance(tools, list):
        raise RecordError(f"Tool message record must carry a 'tools' list: {record!r}")
    return tools


def _deserialize_tool(data: dict[str, Any], with_result: bool) -> Tool:
    try:
        if with_result:
            return Tool(
                name=data["name"],
                description=data.get("description", ""),
                inputs=data.get("inputs") or {},
                call_id=data["callId"],
                result=data.get("result"),
            )
        return Tool(
            name=data["name"],
            description=data.get("description", ""),
            inputs=data.get("inputs") or {},
            call_id=data.get("callId"),
        )
    except KeyError as e:
        raise RecordError(f"Tool record is missing {e.args[0]!r}: {data!r}") from e


def _deserialize_tool_call(record: dict[str, Any]) -> ToolCallMessage:
    tools = [_deserialize_tool(t, with_result=False) for t in _tool_records(record)]
    return ToolCallMessage(record.get("content"), tools)


def _deserialize_tool_call_result(record: dict[str, Any]) -> ToolCallResultMessage:
    tools = [_deserialize_tool(t, with_result=True) for t in _tool_records(record)]
    return ToolCallResultMessage(tools)


def _deserialize_usage(data: Any) -> Usage | None:
    if data is None:
        return None
    try:
        return Usage(
            input_tokens=int(data["input_tokens"]),
            output_tokens=int(data["output_tokens"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise RecordError(f"Invalid usage record: {data!r}") from e


def _deserialize_attachment(data: dict[str, Any]) -> Attachment:
    try:
        kind = AttachmentType(data["type"])
    except (KeyError, ValueError) as e:
        raise RecordError(f"Unknown attachment type in {data!r}") from e
    try:
        content_type = AttachmentContentType(data["content_type"])
    except (KeyError, ValueError) as e:
        raise RecordError(f"Unknown attachment content type in {data!r}") from e
    if "content" not in data:
        raise RecordError(f"Attachment record has no content: {data!r}")

    return _ATTACHMENT_CLASSES[kind](
        data["content"],
        content_type,
        data.get("media_type"),
    )


def _deserialize_meta(
    record: dict[str, Any],
    message: Message,
    primary_keys: frozenset[str],
) -> None:
    """Read every non-primary key: usage, attachments, then plain metadata."""
    for key, value in record.items():
        if key in primary_keys:
            continue
        if key == "usage":
            message.usage = _deserialize_usage(value)
        elif key == "attachments":
            for attachment in value or []:
                message.add_attachment(_deserialize_attachment(attachment))
        else:
            message.add_metadata(key, value)
