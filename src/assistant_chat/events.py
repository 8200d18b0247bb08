"""Typed events decoded from an assistant run stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ToolCallKind(str, Enum):
    CODE = "code_interpreter"
    FUNCTION = "function"
    FILE_SEARCH = "file_search"


class ToolCallRequest(BaseModel):
    """A tool call the backend wants the client to run.

    ``arguments`` is forwarded to the handler untouched.
    """

    id: str
    kind: str = ToolCallKind.FUNCTION.value
    name: str = ""
    arguments: str = ""


class ToolCallOutput(BaseModel):
    """Result of one tool call, sent back to resume the run."""

    model_config = ConfigDict(populate_by_name=True)

    tool_call_id: str = Field(alias="toolCallId")
    output: str


@dataclass
class Annotation:
    """A patch referencing a substring of already streamed text.

    ``kind`` values: ``"file_path"``, ``"file_citation"``.
    """

    kind: str
    text: str
    file_id: str = ""


@dataclass
class StreamEvent:
    """Base for all stream events."""


@dataclass
class TextCreated(StreamEvent):
    """A new text block starts in the assistant's reply."""


@dataclass
class TextDelta(StreamEvent):
    value: str | None = None
    annotations: list[Annotation] | None = None


@dataclass
class ImageFileDone(StreamEvent):
    file_id: str = ""


@dataclass
class ToolCallCreated(StreamEvent):
    kind: str = ""


@dataclass
class ToolCallDelta(StreamEvent):
    kind: str = ""
    code_input: str | None = None


@dataclass
class RunRequiresAction(StreamEvent):
    """The run is paused until outputs for ``tool_calls`` are submitted."""

    run_id: str = ""
    tool_calls: list[ToolCallRequest] = field(default_factory=list)


@dataclass
class RunCompleted(StreamEvent):
    run_id: str = ""


@dataclass
class RunFailed(StreamEvent):
    """The run ended without completing.

    ``status`` values: ``"failed"``, ``"cancelled"``, ``"expired"``,
    ``"incomplete"``.
    """

    run_id: str = ""
    status: str = "failed"
    message: str = ""


TERMINAL_EVENTS = (RunCompleted, RunFailed)
