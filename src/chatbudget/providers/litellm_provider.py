"""Provider backed by litellm, with retries."""

import json
import logging
from collections.abc import Sequence
from typing import Any

import litellm
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ..config import ChatBudgetConfig, RetryConfig
from ..core.messages import format_messages
from ..tools.definitions import tools_to_openai
from ..types import (
    AssistantMessage,
    CompletionError,
    Message,
    Tool,
    ToolCallMessage,
    Usage,
)
from .base import Provider

logger = logging.getLogger(__name__)


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a litellm object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _parse_arguments(arguments: Any) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    try:
        parsed = json.loads(arguments or "{}")
    except json.JSONDecodeError:
        return {"raw": arguments}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


# Transport failures are retried whatever status code they carry
_TRANSIENT_ERRORS = (
    litellm.exceptions.APIConnectionError,
    litellm.exceptions.Timeout,
    ConnectionError,
    TimeoutError,
)


def _make_retry_predicate(config: RetryConfig):
    def should_retry(exception: BaseException) -> bool:
        if isinstance(exception, CompletionError):
            if isinstance(exception.response, _TRANSIENT_ERRORS):
                return True
            if exception.status_code in config.retry_on_status:
                return True
            # Don't retry on other client errors
            if exception.status_code and 400 <= exception.status_code < 500:
                return False
        if isinstance(exception, _TRANSIENT_ERRORS):
            return True
        return False

    return should_retry


class LiteLLMProvider(Provider):
    """
    Provider that sends the conversation through ``litellm.acompletion``.

    Transient failures (429, 5xx, connection errors) are retried with
    exponential backoff and jitter; anything else surfaces as a
    ``CompletionError``.

    Example:
        provider = LiteLLMProvider(model="gpt-4o-mini", temperature=0.2)
        reply = await provider.system_prompt("Be brief.").chat_async(messages)

        # Offline, using litellm's mock support
        provider = LiteLLMProvider(model="gpt-4o", mock_response="Hi!")
    """

    def __init__(
        self,
        model: str | None = None,
        config: ChatBudgetConfig | None = None,
        retry: RetryConfig | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ):
        """
        Initialize the provider.

        Args:
            model: litellm model identifier (defaults to config.default_model)
            config: Configuration (read from the environment if not given)
            retry: Retry configuration (defaults to config.retry)
            timeout: Request timeout in seconds (defaults to config.timeout)
            **kwargs: Extra parameters passed through to litellm
        """
        super().__init__()
        self._config = config or ChatBudgetConfig.from_env()
        self._model = model or self._config.default_model
        if not self._model:
            raise ValueError("No model specified and no default_model configured")
        self._retry = retry or self._config.retry
        self._timeout = timeout if timeout is not None else self._config.timeout
        self._extra_kwargs = kwargs

    async def chat_async(self, messages: Sequence[Message]) -> Message:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": format_messages(messages, system=self._system),
            "timeout": self._timeout,
        }
        if self._tools:
            kwargs["tools"] = tools_to_openai(self._tools)
        kwargs.update(self._extra_kwargs)

        logger.debug(
            f"Completion request: model={self._model}, messages={len(kwargs['messages'])}, "
            f"tools={len(self._tools)}"
        )
        response = await self._complete_with_retry(kwargs)
        return self._parse_response(response)

    async def _complete_with_retry(self, kwargs: dict[str, Any]) -> Any:
        try:
            async for attempt_state in AsyncRetrying(
                stop=stop_after_attempt(self._retry.max_attempts),
                wait=wait_exponential_jitter(
                    initial=self._retry.initial_delay,
                    max=self._retry.max_delay,
                    exp_base=self._retry.exponential_base,
                    jitter=self._retry.initial_delay if self._retry.jitter else 0,
                ),
                retry=retry_if_exception(_make_retry_predicate(self._retry)),
                reraise=True,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    if attempt > 1:
                        logger.info(
                            f"Retry attempt {attempt}/{self._retry.max_attempts} "
                            f"for model={self._model}"
                        )
                    return await self._complete(kwargs)
        except RetryError as e:
            if e.last_attempt.failed:
                exc = e.last_attempt.exception()
                if exc is not None:
                    raise exc from e
            raise CompletionError("Retry attempts exhausted") from e

        raise CompletionError("Retry logic failed unexpectedly")

    async def _complete(self, kwargs: dict[str, Any]) -> Any:
        try:
            return await litellm.acompletion(**kwargs)
        except litellm.exceptions.APIConnectionError as e:
            raise CompletionError(f"API connection error: {e}", response=e) from e
        except litellm.exceptions.RateLimitError as e:
            raise CompletionError(
                f"Rate limit exceeded: {e}",
                status_code=429,
                response=e,
            ) from e
        except litellm.exceptions.Timeout as e:
            raise CompletionError(f"Request timed out: {e}", response=e) from e
        except litellm.exceptions.APIError as e:
            raise CompletionError(
                f"API error: {e}",
                status_code=getattr(e, "status_code", None),
                response=e,
            ) from e
        except Exception as e:
            # InternalServerError, BadGatewayError etc. are not APIError subclasses
            raise CompletionError(
                f"Completion failed: {e}",
                status_code=getattr(e, "status_code", None),
                response=e,
            ) from e

    def _parse_response(self, response: Any) -> Message:
        choices = _get(response, "choices") or []
        if not choices:
            raise CompletionError("Completion returned no choices", response=response)

        message = _get(choices[0], "message")
        content = _get(message, "content")
        tool_calls = _get(message, "tool_calls") or []

        raw_usage = _get(response, "usage")
        usage = None
        if raw_usage is not None:
            usage = Usage(
                input_tokens=_get(raw_usage, "prompt_tokens", 0) or 0,
                output_tokens=_get(raw_usage, "completion_tokens", 0) or 0,
            )

        if tool_calls:
            descriptions = {t.name: t.description for t in self._tools}
            tools = []
            for tc in tool_calls:
                function = _get(tc, "function")
                name = _get(function, "name", "")
                tools.append(
                    Tool(
                        name=name,
                        description=descriptions.get(name, ""),
                        inputs=_parse_arguments(_get(function, "arguments")),
                        call_id=_get(tc, "id"),
                    )
                )
            logger.debug(f"Model requested tools: {', '.join(t.name for t in tools)}")
            return ToolCallMessage(content, tools, usage=usage)

        return AssistantMessage(content or "", usage=usage)

    @property
    def model(self) -> str:
        return self._model
