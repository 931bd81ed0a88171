"""Tool/function calling helpers.

This module provides utilities for:
- Defining tools using decorators (@tool) or Pydantic models
- Converting tools to the provider wire format
- Executing the tool calls requested by the model

Example:
    from chatbudget.tools import ToolExecutor, tool

    @tool()
    def get_weather(location: str, unit: str = "celsius") -> str:
        '''Get the current weather for a location.'''
        return f"Weather in {location}: 72°F"

    executor = ToolExecutor([get_weather])
    result_message = await executor.execute(tool_call_message)
"""

from .definitions import (
    ToolDefinition,
    ToolRegistry,
    build_tool_registry,
    format_tool_result,
    get_tool_definition,
    resolve_tool,
    tool,
    tool_from_pydantic,
    tools_to_openai,
)
from .execution import ToolExecutor, execute_tool

__all__ = [
    # Definitions
    "tool",
    "tool_from_pydantic",
    "ToolDefinition",
    "ToolRegistry",
    "get_tool_definition",
    "resolve_tool",
    "build_tool_registry",
    "tools_to_openai",
    "format_tool_result",
    # Execution
    "ToolExecutor",
    "execute_tool",
]
