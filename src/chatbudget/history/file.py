"""JSON file backed chat history for persistence across restarts."""

import json
import logging
from pathlib import Path
from typing import Any

from ..config import DEFAULT_CONTEXT_WINDOW, DEFAULT_SUMMARY_PROMPT, ChatBudgetConfig
from ..types import ConfigError, Message, RecordError
from .base import ChatHistory

logger = logging.getLogger(__name__)


class FileChatHistory(ChatHistory):
    """
    Chat history persisted as a JSON list of records in a single file.

    The file is rewritten on every change and removed on ``flush_all``.
    Creating a history for an existing key restores its messages.

    Example:
        history = FileChatHistory("./chats", key="user-42")
        history.add_message(UserMessage("Hello!"))

        # Later, in another process
        history = FileChatHistory("./chats", key="user-42")
        len(history)  # 1
    """

    def __init__(
        self,
        directory: str | Path,
        key: str,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        should_summarize: bool = False,
        summary_prompt: str = DEFAULT_SUMMARY_PROMPT,
        prefix: str = "chatbudget_",
        ext: str = ".chat",
    ):
        """
        Initialize the file history.

        Args:
            directory: Directory holding the history file (created if missing)
            key: Conversation key, used in the file name
            context_window: Token budget the retained messages may not exceed
            should_summarize: Build a summary snapshot before evicting
            summary_prompt: Default system prompt for the summarization pass
            prefix: File name prefix
            ext: File name extension
        """
        super().__init__(context_window, should_summarize, summary_prompt)
        self._directory = Path(directory)
        self._key = key
        self._path = self._directory / f"{prefix}{key}{ext}"
        self._records: list[dict[str, Any]] = []

        self._directory.mkdir(parents=True, exist_ok=True)
        self._init_history()

    @classmethod
    def from_config(cls, config: ChatBudgetConfig, **kwargs: Any) -> "FileChatHistory":
        """Create a history in ``config.history_dir`` unless a directory is given."""
        if "directory" not in kwargs:
            if config.history_dir is None:
                raise ConfigError("FileChatHistory needs a directory or config.history_dir")
            kwargs["directory"] = config.history_dir
        return cls(
            context_window=config.context_window,
            should_summarize=config.should_summarize,
            summary_prompt=config.summary_prompt,
            **kwargs,
        )

    def _init_history(self) -> None:
        if not self._path.exists():
            return

        try:
            with open(self._path) as f:
                records = json.load(f)
        except json.JSONDecodeError as e:
            raise RecordError(f"Corrupt chat history file {self._path}: {e}") from e

        if not isinstance(records, list):
            raise RecordError(f"Chat history file {self._path} must contain a JSON list")

        self._load_records(records)
        self._records = records
        logger.debug(f"Restored {len(records)} messages from {self._path}")

    def _write(self) -> None:
        with open(self._path, "w") as f:
            json.dump(self._records, f, indent=2)

    def _store_message(self, message: Message) -> None:
        self._records.append(message.to_dict())
        self._write()

    def remove_oldest_message(self) -> None:
        if self._records:
            self._records.pop(0)
            self._write()

    def _clear(self) -> None:
        self._records = []
        if self._path.exists():
            self._path.unlink()

    @property
    def path(self) -> Path:
        """Location of the history file."""
        return self._path
