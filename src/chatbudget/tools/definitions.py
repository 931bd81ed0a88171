"""Tool definitions offered to the provider.

Tools can be defined using:
1. The @tool decorator on functions
2. Pydantic models for complex parameter schemas
"""

import inspect
import json
import types
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, TypeVar, get_type_hints

from pydantic import BaseModel

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class ToolDefinition:
    """A callable tool with its parameter schema."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema
    func: Callable[..., Any]
    strict: bool = False

    def to_openai_tool(self) -> dict[str, Any]:
        """Convert to the OpenAI tool format (accepted by litellm for every provider)."""
        tool_def: dict[str, Any] = {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
        if self.strict:
            tool_def["function"]["strict"] = True
        return tool_def

    async def execute(self, **kwargs: Any) -> Any:
        """Execute the tool with given arguments."""
        if inspect.iscoroutinefunction(self.func):
            return await self.func(**kwargs)
        return self.func(**kwargs)


@dataclass
class ToolRegistry:
    """Registry of available tools, keyed by name."""

    tools: dict[str, ToolDefinition] = field(default_factory=dict)

    def register(self, tool: ToolDefinition) -> None:
        self.tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition | None:
        return self.tools.get(name)

    def to_openai_tools(self) -> list[dict[str, Any]]:
        return [t.to_openai_tool() for t in self.tools.values()]

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.tools.values())

    def __len__(self) -> int:
        return len(self.tools)

    def __contains__(self, name: object) -> bool:
        return name in self.tools


def _python_type_to_json_schema(python_type: Any) -> dict[str, Any]:
    """Convert a Python type annotation to JSON Schema."""
    if python_type is type(None):
        return {"type": "null"}

    type_mapping = {
        str: {"type": "string"},
        int: {"type": "integer"},
        float: {"type": "number"},
        bool: {"type": "boolean"},
    }

    if python_type in type_mapping:
        return type_mapping[python_type]

    origin = getattr(python_type, "__origin__", None)

    if origin is list:
        args = getattr(python_type, "__args__", (Any,))
        item_type = args[0] if args else Any
        return {"type": "array", "items": _python_type_to_json_schema(item_type)}

    if origin is dict:
        return {"type": "object"}

    # Optional[X] and X | None collapse to X
    if isinstance(python_type, types.UnionType) or str(origin) == "typing.Union":
        args = getattr(python_type, "__args__", ())
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1:
            return _python_type_to_json_schema(non_none[0])

    if isinstance(python_type, type) and issubclass(python_type, BaseModel):
        return python_type.model_json_schema()

    if str(origin).endswith("Literal"):
        args = getattr(python_type, "__args__", ())
        return {"type": "string", "enum": list(args)}

    return {"type": "string"}


def _extract_function_schema(func: Callable[..., Any]) -> dict[str, Any]:
    """Extract JSON Schema from function signature."""
    sig = inspect.signature(func)
    hints = get_type_hints(func) if hasattr(func, "__annotations__") else {}

    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, param in sig.parameters.items():
        if name in ("self", "cls"):
            continue

        properties[name] = _python_type_to_json_schema(hints.get(name, str))

        if param.default is inspect.Parameter.empty:
            required.append(name)

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }

    if required:
        schema["required"] = required

    return schema


def _extract_docstring_description(func: Callable[..., Any]) -> str:
    """First paragraph of the docstring."""
    doc = func.__doc__
    if not doc:
        return f"Function {func.__name__}"

    desc_lines = []
    for line in doc.strip().split("\n"):
        stripped = line.strip()
        if not stripped:
            break
        desc_lines.append(stripped)

    return " ".join(desc_lines) if desc_lines else f"Function {func.__name__}"


def tool(
    name: str | None = None,
    description: str | None = None,
    strict: bool = False,
) -> Callable[[F], F]:
    """
    Decorator to define a tool from a function.

    The function's type hints are used to generate the JSON Schema for
    the tool parameters. The docstring is used for the description.

    Args:
        name: Tool name (defaults to function name)
        description: Tool description (defaults to docstring)
        strict: Enable strict mode for providers that support it

    Example:
        @tool()
        def get_weather(location: str, unit: str = "celsius") -> str:
            '''Get the current weather for a location.'''
            return f"Weather in {location}: 72°F"
    """

    def decorator(func: F) -> F:
        tool_def = ToolDefinition(
            name=name or func.__name__,
            description=description or _extract_docstring_description(func),
            parameters=_extract_function_schema(func),
            func=func,
            strict=strict,
        )
        func._tool_definition = tool_def  # type: ignore

        return func

    return decorator


def tool_from_pydantic(
    model: type[BaseModel],
    func: Callable[..., Any],
    name: str | None = None,
    description: str | None = None,
    strict: bool = False,
) -> ToolDefinition:
    """
    Create a tool definition from a Pydantic model.

    The model's JSON schema becomes the tool's parameter schema; ``func``
    receives the tool inputs as keyword arguments.

    Example:
        class SearchParams(BaseModel):
            '''Search the web for information.'''
            query: str = Field(description="The search query")
            max_results: int = Field(default=10, ge=1, le=100)

        search_tool = tool_from_pydantic(SearchParams, do_search)
    """
    tool_name = name or model.__name__
    tool_desc = description or model.__doc__ or f"Tool {tool_name}"

    schema = model.model_json_schema()
    if "$defs" in schema:
        del schema["$defs"]

    return ToolDefinition(
        name=tool_name,
        description=tool_desc,
        parameters=schema,
        func=func,
        strict=strict,
    )


def get_tool_definition(func: Callable[..., Any]) -> ToolDefinition | None:
    """Get the tool definition attached to a decorated function."""
    return getattr(func, "_tool_definition", None)


def resolve_tool(t: ToolDefinition | Callable[..., Any]) -> ToolDefinition:
    """Accept a ToolDefinition or a @tool decorated function."""
    if isinstance(t, ToolDefinition):
        return t
    tool_def = get_tool_definition(t)
    if tool_def is None:
        raise ValueError(f"Not a valid tool: {t}")
    return tool_def


def build_tool_registry(
    tools: Iterable[ToolDefinition | Callable[..., Any]],
) -> ToolRegistry:
    """Build a registry from ToolDefinitions and @tool decorated functions."""
    registry = ToolRegistry()
    for t in tools:
        registry.register(resolve_tool(t))
    return registry


def tools_to_openai(tools: Iterable[ToolDefinition | Callable[..., Any]]) -> list[dict[str, Any]]:
    """Convert a list of tools to OpenAI format."""
    return [resolve_tool(t).to_openai_tool() for t in tools]


def format_tool_result(result: Any, is_error: bool = False) -> str:
    """
    Render a tool result as message content.

    Pydantic models and JSON containers are JSON encoded, anything else goes
    through ``str``.
    """
    if isinstance(result, BaseModel):
        content = result.model_dump_json()
    elif isinstance(result, (dict, list)):
        content = json.dumps(result)
    else:
        content = str(result)

    if is_error:
        return f"Error: {content}"
    return content
