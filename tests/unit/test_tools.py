import json

import pytest

from assistant_chat.events import ToolCallRequest
from assistant_chat.tools import Tool, default_handler, function_call_handler, tool


@tool
def building_hours(building: str, day: str = "monday"):
    """Opening hours for a campus building."""
    return {"building": building, "day": day, "hours": "8-16"}


@tool
async def echo(text: str):
    """Echo text back."""
    return text


def test_tool_decorator_uses_function_name():
    assert isinstance(building_hours, Tool)
    assert building_hours.name == "building_hours"


@pytest.mark.asyncio
async def test_tool_call_awaits_coroutines():
    assert await echo(text="hi") == "hi"


@pytest.mark.asyncio
async def test_handler_dispatches_by_name_and_encodes_result():
    handler = function_call_handler([building_hours, echo])
    output = await handler(ToolCallRequest(
        id="c1", name="building_hours", arguments='{"building": "Senate"}',
    ))
    assert json.loads(output) == {
        "building": "Senate", "day": "monday", "hours": "8-16",
    }


@pytest.mark.asyncio
async def test_handler_returns_strings_unchanged():
    handler = function_call_handler([echo])
    output = await handler(ToolCallRequest(
        id="c1", name="echo", arguments='{"text": "plain"}',
    ))
    assert output == "plain"


@pytest.mark.asyncio
async def test_handler_raises_for_unknown_tool():
    handler = function_call_handler([echo])
    with pytest.raises(KeyError, match="missing"):
        await handler(ToolCallRequest(id="c1", name="missing", arguments="{}"))


@pytest.mark.asyncio
async def test_handler_raises_for_bad_arguments():
    handler = function_call_handler([echo])
    with pytest.raises(json.JSONDecodeError):
        await handler(ToolCallRequest(id="c1", name="echo", arguments="{oops"))


@pytest.mark.asyncio
async def test_default_handler():
    assert await default_handler(ToolCallRequest(id="c1")) == ""
