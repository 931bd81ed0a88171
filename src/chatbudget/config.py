"""Configuration management and environment loading."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .types import ConfigError

DEFAULT_CONTEXT_WINDOW = 50_000

DEFAULT_SUMMARY_PROMPT = (
    "You are a helpful assistant who summarizes messages in the best possible way "
    "for an LLM's understanding"
)


@dataclass
class RetryConfig:
    """Configuration for provider retry behavior."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    # HTTP status codes to retry on
    retry_on_status: tuple[int, ...] = (429, 500, 502, 503, 504)


@dataclass
class ChatBudgetConfig:
    """Main configuration for chat histories and agents."""

    # Token budget of the history buffer
    context_window: int = DEFAULT_CONTEXT_WINDOW

    # Build a summary snapshot before evicting on overflow
    should_summarize: bool = False
    summary_prompt: str = DEFAULT_SUMMARY_PROMPT

    # System instructions sent with every inference
    instructions: str | None = None

    # Model used by LiteLLMProvider when none is given
    default_model: str | None = None

    # None means the agent follows tool calls without a limit
    max_tool_rounds: int | None = None

    retry: RetryConfig = field(default_factory=RetryConfig)

    # Directory for FileChatHistory
    history_dir: Path | str | None = None

    log_level: str = "INFO"

    # Provider timeout in seconds
    timeout: float = 600.0

    @classmethod
    def from_env(cls) -> "ChatBudgetConfig":
        """Create config from environment variables."""
        config = cls()

        if window := os.getenv("CHATBUDGET_CONTEXT_WINDOW"):
            try:
                config.context_window = int(window)
            except ValueError:
                raise ConfigError(f"Invalid CHATBUDGET_CONTEXT_WINDOW: {window}")

        if os.getenv("CHATBUDGET_SHOULD_SUMMARIZE", "").lower() in ("1", "true", "yes"):
            config.should_summarize = True

        if prompt := os.getenv("CHATBUDGET_SUMMARY_PROMPT"):
            config.summary_prompt = prompt

        if instructions := os.getenv("CHATBUDGET_INSTRUCTIONS"):
            config.instructions = instructions

        if model := os.getenv("CHATBUDGET_DEFAULT_MODEL"):
            config.default_model = model

        if rounds := os.getenv("CHATBUDGET_MAX_TOOL_ROUNDS"):
            try:
                config.max_tool_rounds = int(rounds)
            except ValueError:
                raise ConfigError(f"Invalid CHATBUDGET_MAX_TOOL_ROUNDS: {rounds}")

        if attempts := os.getenv("CHATBUDGET_RETRY_ATTEMPTS"):
            try:
                config.retry.max_attempts = int(attempts)
            except ValueError:
                raise ConfigError(f"Invalid CHATBUDGET_RETRY_ATTEMPTS: {attempts}")

        if history_dir := os.getenv("CHATBUDGET_HISTORY_DIR"):
            config.history_dir = Path(history_dir)

        if log_level := os.getenv("CHATBUDGET_LOG_LEVEL"):
            config.log_level = log_level.upper()

        if timeout := os.getenv("CHATBUDGET_TIMEOUT"):
            try:
                config.timeout = float(timeout)
            except ValueError:
                raise ConfigError(f"Invalid CHATBUDGET_TIMEOUT: {timeout}")

        return config


def load_env_files(
    env_file: str | Path | None = None,
    env_files: list[str | Path] | None = None,
) -> None:
    """
    Load environment variables from .env files.

    Args:
        env_file: Single env file to load
        env_files: Multiple env files to load (later files override earlier)
    """
    files_to_load: list[Path] = []

    if env_files:
        files_to_load.extend(Path(f) for f in env_files)
    elif env_file:
        files_to_load.append(Path(env_file))
    else:
        default_env = Path(".env")
        if default_env.exists():
            files_to_load.append(default_env)

    for file_path in files_to_load:
        if file_path.exists():
            load_dotenv(file_path, override=True)
