"""Execution of the tools requested by the model."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from ..types import Tool, ToolCallMessage, ToolCallResultMessage
from .definitions import ToolDefinition, ToolRegistry, build_tool_registry, format_tool_result

logger = logging.getLogger(__name__)


async def execute_tool(
    tool: ToolDefinition,
    arguments: dict[str, Any],
) -> tuple[Any, str | None]:
    """
    Execute a single tool with error handling.

    Returns:
        Tuple of (result, error_message). error_message is None on success.
    """
    try:
        result = await tool.execute(**arguments)
        return result, None
    except Exception as e:
        logger.warning(f"Tool {tool.name} failed: {e}")
        return None, str(e)


class ToolExecutor:
    """
    Runs the tools of a ToolCallMessage and collects their results.

    Failures never escape: an unknown tool or an exception raised by the
    tool is encoded into that invocation's result as ``"Error: ..."`` so the
    model can see what went wrong.

    Example:
        executor = ToolExecutor([get_weather, search_web])
        result_message = await executor.execute(tool_call_message)
    """

    def __init__(
        self,
        tools: ToolRegistry | Iterable[ToolDefinition | Callable[..., Any]] = (),
        parallel: bool = True,
    ):
        """
        Initialize the executor.

        Args:
            tools: Registry or list of tools that may be invoked
            parallel: Run the invocations of one message concurrently
        """
        self._registry = tools if isinstance(tools, ToolRegistry) else build_tool_registry(tools)
        self._parallel = parallel

    async def _run_one(self, invocation: Tool) -> Tool:
        definition = self._registry.get(invocation.name)
        if definition is None:
            logger.warning(f"Model requested unknown tool: {invocation.name}")
            return invocation.with_result(
                format_tool_result(f"Unknown tool: {invocation.name}", is_error=True)
            )

        result, error = await execute_tool(definition, invocation.inputs)
        if error is not None:
            return invocation.with_result(format_tool_result(error, is_error=True))
        return invocation.with_result(result)

    async def execute(self, message: ToolCallMessage) -> ToolCallResultMessage:
        """Run every tool in ``message``; results keep the call order."""
        logger.debug(
            f"Executing tools: {', '.join(t.name for t in message.tools) or '(none)'}"
        )

        if self._parallel:
            results = await asyncio.gather(*[self._run_one(t) for t in message.tools])
        else:
            results = [await self._run_one(t) for t in message.tools]

        return ToolCallResultMessage(list(results))

    @property
    def registry(self) -> ToolRegistry:
        return self._registry
