import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from assistant_chat.events import ToolCallRequest

logger = logging.getLogger(__name__)

ToolCallHandler = Callable[[ToolCallRequest], Awaitable[str]]


@dataclass
class Tool:
    """A local function the assistant may call by name."""

    func: Callable
    name: str

    async def __call__(self, **kwargs):
        result = self.func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


def tool(func: Callable) -> Tool:
    """Register *func* as a callable tool under its own name."""
    return Tool(func=func, name=func.__name__)


async def default_handler(tool_call: ToolCallRequest) -> str:
    """Answer every tool call with an empty output."""
    return ""


def function_call_handler(tools: list[Tool]) -> ToolCallHandler:
    """Build a handler that runs function tool calls against *tools*.

    Arguments are parsed as a JSON object and passed as keyword
    arguments.  Non-string results are JSON encoded.  Unknown tools and
    bad arguments raise, which abandons the whole batch.
    """
    registry = {t.name: t for t in tools}

    async def handle(tool_call: ToolCallRequest) -> str:
        tool_obj = registry.get(tool_call.name)
        if tool_obj is None:
            raise KeyError(f"Tool not found: {tool_call.name}")
        params = json.loads(tool_call.arguments) if tool_call.arguments else {}
        logger.info(f"Calling {tool_call.name} with {params}")
        result = await tool_obj(**params)
        return result if isinstance(result, str) else json.dumps(result)

    return handle
