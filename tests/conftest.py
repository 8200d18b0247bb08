import json

import pytest

from assistant_chat.errors import TransportError
from assistant_chat.events import ToolCallOutput


# ---------------------------------------------------------------------------
# Wire line builders (mirror the OpenAI AssistantStreamEvent shape)
# ---------------------------------------------------------------------------

def line(event: str, data: dict) -> bytes:
    return (json.dumps({"event": event, "data": data}) + "\n").encode()


def text_delta(
    value: str | None,
    index: int = 0,
    message_id: str = "msg_1",
    annotations: list[dict] | None = None,
) -> bytes:
    text = {"value": value}
    if annotations is not None:
        text["annotations"] = annotations
    return line("thread.message.delta", {
        "id": message_id,
        "object": "thread.message.delta",
        "delta": {"content": [{"index": index, "type": "text", "text": text}]},
    })


def image_delta(file_id: str, index: int = 0, message_id: str = "msg_1") -> bytes:
    return line("thread.message.delta", {
        "id": message_id,
        "delta": {"content": [{
            "index": index,
            "type": "image_file",
            "image_file": {"file_id": file_id},
        }]},
    })


def file_path_annotation(text: str, file_id: str) -> dict:
    return {
        "index": 0,
        "type": "file_path",
        "text": text,
        "file_path": {"file_id": file_id},
        "start_index": 0,
        "end_index": len(text),
    }


def code_delta(code: str, index: int = 0, step_id: str = "step_1") -> bytes:
    return line("thread.run.step.delta", {
        "id": step_id,
        "delta": {"step_details": {
            "type": "tool_calls",
            "tool_calls": [{
                "index": index,
                "type": "code_interpreter",
                "code_interpreter": {"input": code, "outputs": []},
            }],
        }},
    })


def function_delta(index: int = 0, step_id: str = "step_1") -> bytes:
    return line("thread.run.step.delta", {
        "id": step_id,
        "delta": {"step_details": {
            "type": "tool_calls",
            "tool_calls": [{
                "index": index,
                "id": f"call_{index}",
                "type": "function",
                "function": {"name": "lookup", "arguments": ""},
            }],
        }},
    })


def requires_action(
    calls: list[tuple[str, str, dict]], run_id: str = "run_1",
) -> bytes:
    """Each item in *calls* is ``(call_id, func_name, args_dict)``."""
    return line("thread.run.requires_action", {
        "id": run_id,
        "status": "requires_action",
        "required_action": {
            "type": "submit_tool_outputs",
            "submit_tool_outputs": {"tool_calls": [
                {
                    "id": call_id,
                    "type": "function",
                    "function": {"name": name, "arguments": json.dumps(args)},
                }
                for call_id, name, args in calls
            ]},
        },
    })


def run_completed(run_id: str = "run_1") -> bytes:
    return line("thread.run.completed", {"id": run_id, "status": "completed"})


def run_failed(message: str = "boom", run_id: str = "run_1") -> bytes:
    return line("thread.run.failed", {
        "id": run_id,
        "status": "failed",
        "last_error": {"code": "server_error", "message": message},
    })


# ---------------------------------------------------------------------------
# Fake proxy transport
# ---------------------------------------------------------------------------

class FakeTransport:
    """Transport double that replays pre-queued byte streams."""

    def __init__(self, thread_id: str = "thread_1"):
        self.thread_id = thread_id
        self.streams: list[list[bytes] | Exception] = []
        self.posted: list[tuple[str, str]] = []
        self.submitted: list[tuple[str, str, list[ToolCallOutput]]] = []
        self.threads_created = 0

    async def create_thread(self) -> str:
        self.threads_created += 1
        return self.thread_id

    def post_message(self, thread_id, content):
        self.posted.append((thread_id, content))
        return self._replay()

    def submit_tool_outputs(self, thread_id, run_id, outputs):
        self.submitted.append((thread_id, run_id, outputs))
        return self._replay()

    async def _replay(self):
        stream = self.streams.pop(0)
        if isinstance(stream, Exception):
            raise stream
        for chunk in stream:
            yield chunk


# ---------------------------------------------------------------------------
# Fake assistant backend (server side)
# ---------------------------------------------------------------------------

class FakeBackend:
    """Stands in for AssistantBackend. No network calls."""

    def __init__(self):
        self.events: list[list[dict]] = []
        self.messages: list[tuple[str, str]] = []
        self.submitted: list[tuple[str, str, list[ToolCallOutput]]] = []
        self.files: dict[str, tuple[bytes, str]] = {}

    async def create_thread(self) -> str:
        return "thread_abc"

    async def post_message(self, thread_id, content):
        self.messages.append((thread_id, content))
        return self._replay()

    def submit_tool_outputs(self, thread_id, run_id, outputs):
        self.submitted.append((thread_id, run_id, outputs))
        return self._replay()

    async def file_content(self, file_id):
        return self.files[file_id]

    async def _replay(self):
        for event in self.events.pop(0):
            yield event


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def failing_transport():
    transport = FakeTransport()
    transport.streams = [TransportError(500, "upstream down")]
    return transport
