"""Structured JSONL logging of agent events."""

import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TextIO


class StructuredLogger:
    """
    Writes every agent event as one JSON object per line.

    Register it on a CallbackManager for all events:

        structured = StructuredLogger(log_file="./logs/chat.jsonl")
        callbacks = CallbackManager()
        callbacks.add("*", structured)
        agent = Agent(history, provider, notifier=callbacks)
    """

    def __init__(
        self,
        log_file: str | Path | None = None,
        include_content: bool = True,
        max_content_length: int | None = None,
        redact_patterns: list[str] | None = None,
        stdout: bool = False,
    ):
        """
        Initialize the structured logger.

        Args:
            log_file: Path to log file (JSONL format). None disables file logging.
            include_content: Whether to include message content in entries
            max_content_length: Max length of content to log (None = unlimited)
            redact_patterns: Substrings to redact from content (e.g., API keys)
            stdout: Whether to also log to stdout
        """
        self._log_file: Path | None = Path(log_file) if log_file else None
        self._include_content = include_content
        self._max_content_length = max_content_length
        self._redact_patterns = redact_patterns or []
        self._stdout = stdout
        self._file_handle: TextIO | None = None

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(self._log_file, "a")

    def _redact(self, text: str) -> str:
        for pattern in self._redact_patterns:
            text = text.replace(pattern, "[REDACTED]")
        return text

    def _truncate(self, text: str) -> str:
        if self._max_content_length and len(text) > self._max_content_length:
            return text[: self._max_content_length] + "... [truncated]"
        return text

    def _scrub(self, value: Any) -> Any:
        """Apply content settings to every ``content`` field of a payload."""
        if isinstance(value, dict):
            scrubbed = {}
            for key, item in value.items():
                if key == "content" and isinstance(item, str):
                    if not self._include_content:
                        continue
                    item = self._truncate(self._redact(item))
                scrubbed[key] = self._scrub(item)
            return scrubbed
        if isinstance(value, list):
            return [self._scrub(item) for item in value]
        return value

    def _write_entry(self, entry: dict[str, Any]) -> None:
        json_str = json.dumps(entry, default=str)

        if self._file_handle:
            self._file_handle.write(json_str + "\n")
            self._file_handle.flush()

        if self._stdout:
            print(json_str, file=sys.stdout)

    def __call__(self, event: str, *payload: Any) -> None:
        entry: dict[str, Any] = {
            "type": event,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        for item in payload:
            if hasattr(item, "to_dict"):
                entry.update(self._scrub(item.to_dict()))
        self._write_entry(entry)

    def close(self) -> None:
        """Close the log file."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None
