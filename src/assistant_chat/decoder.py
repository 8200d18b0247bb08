"""Decode the proxy's NDJSON run stream into :class:`StreamEvent` objects.

Each line is one ``{"event": ..., "data": ...}`` object, the shape the
OpenAI SDK gives its ``AssistantStreamEvent`` models.  The
:class:`StreamDecoder` buffers partial lines across chunks and tracks
which content parts and tool calls it has already announced.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from assistant_chat.errors import StreamDecodeError, StreamError
from assistant_chat.events import (
    Annotation,
    ImageFileDone,
    RunCompleted,
    RunFailed,
    RunRequiresAction,
    StreamEvent,
    TextCreated,
    TextDelta,
    ToolCallCreated,
    ToolCallDelta,
    ToolCallKind,
    ToolCallRequest,
)

logger = logging.getLogger(__name__)

FAILED_RUN_EVENTS = {
    "thread.run.failed": "failed",
    "thread.run.cancelled": "cancelled",
    "thread.run.expired": "expired",
    "thread.run.incomplete": "incomplete",
}


def _parse_annotations(raw: list[dict] | None) -> list[Annotation] | None:
    if not raw:
        return None
    annotations = []
    for item in raw:
        kind = item.get("type", "")
        ref = item.get(kind) or {}
        annotations.append(Annotation(
            kind=kind,
            text=item.get("text") or "",
            file_id=ref.get("file_id") or "",
        ))
    return annotations


class StreamDecoder:
    """Turns byte chunks into an ordered list of events."""

    def __init__(self) -> None:
        self._buffer = b""
        self._content_parts: set[tuple[str, int]] = set()
        self._tool_calls: set[tuple[str, int]] = set()

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        events: list[StreamEvent] = []
        for line in lines:
            events.extend(self.decode_line(line))
        return events

    def close(self) -> list[StreamEvent]:
        """Decode whatever is left after the final newline."""
        line, self._buffer = self._buffer, b""
        return self.decode_line(line)

    def decode_line(self, line: bytes) -> list[StreamEvent]:
        line = line.strip()
        if not line:
            return []
        try:
            payload = json.loads(line)
        except ValueError as e:
            raise StreamDecodeError(f"Invalid stream line: {e}") from e
        if not isinstance(payload, dict):
            raise StreamDecodeError(f"Expected a JSON object, got {line!r}")

        name = payload.get("event")
        data = payload.get("data") or {}
        try:
            return self._dispatch(name, data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StreamDecodeError(
                f"Malformed {name} event: {e!r}"
            ) from e

    def _dispatch(self, name: str | None, data: dict) -> list[StreamEvent]:
        if name == "thread.message.delta":
            return self._message_delta(data)
        if name == "thread.run.step.delta":
            return self._run_step_delta(data)
        if name == "thread.run.requires_action":
            return [self._requires_action(data)]
        if name == "thread.run.completed":
            return [RunCompleted(run_id=data.get("id", ""))]
        if name in FAILED_RUN_EVENTS:
            last_error = data.get("last_error") or {}
            return [RunFailed(
                run_id=data.get("id", ""),
                status=FAILED_RUN_EVENTS[name],
                message=last_error.get("message", ""),
            )]
        if name == "error":
            raise StreamError(data.get("message") or "Assistant stream error")
        logger.debug(f"Ignoring {name} event")
        return []

    def _message_delta(self, data: dict) -> list[StreamEvent]:
        message_id = data.get("id", "")
        events: list[StreamEvent] = []
        for part in (data.get("delta") or {}).get("content") or []:
            key = (message_id, part.get("index", 0))
            first_seen = key not in self._content_parts
            self._content_parts.add(key)
            if part.get("type") == "text":
                text = part.get("text") or {}
                if first_seen:
                    events.append(TextCreated())
                events.append(TextDelta(
                    value=text.get("value"),
                    annotations=_parse_annotations(text.get("annotations")),
                ))
            elif part.get("type") == "image_file" and first_seen:
                image = part.get("image_file") or {}
                events.append(ImageFileDone(file_id=image.get("file_id", "")))
        return events

    def _run_step_delta(self, data: dict) -> list[StreamEvent]:
        step_id = data.get("id", "")
        details = (data.get("delta") or {}).get("step_details") or {}
        if details.get("type") != "tool_calls":
            return []
        events: list[StreamEvent] = []
        for call in details.get("tool_calls") or []:
            kind = call.get("type", "")
            key = (step_id, call.get("index", 0))
            if key not in self._tool_calls:
                self._tool_calls.add(key)
                events.append(ToolCallCreated(kind=kind))
            code_input = None
            if kind == ToolCallKind.CODE:
                code_input = (call.get("code_interpreter") or {}).get("input")
            if code_input:
                events.append(ToolCallDelta(kind=kind, code_input=code_input))
        return events

    def _requires_action(self, data: dict) -> RunRequiresAction:
        action = data.get("required_action") or {}
        calls = (action.get("submit_tool_outputs") or {}).get("tool_calls") or []
        return RunRequiresAction(
            run_id=data.get("id", ""),
            tool_calls=[
                ToolCallRequest(
                    id=call["id"],
                    kind=call.get("type", ToolCallKind.FUNCTION.value),
                    name=(call.get("function") or {}).get("name", ""),
                    arguments=(call.get("function") or {}).get("arguments", ""),
                )
                for call in calls
            ],
        )


async def decode_stream(
    chunks: AsyncIterator[bytes],
) -> AsyncIterator[StreamEvent]:
    """Yield events from an async byte stream as lines complete."""
    decoder = StreamDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.close():
        yield event
