"""Fold stream events into renderable chat state.

Every amending event targets the *current last* message; nothing is
looked up by id, so events must be applied in arrival order.
"""

import logging
from collections.abc import Iterable

from assistant_chat.events import (
    Annotation,
    ImageFileDone,
    RunCompleted,
    RunFailed,
    StreamEvent,
    TextCreated,
    TextDelta,
    ToolCallCreated,
    ToolCallDelta,
    ToolCallKind,
)
from assistant_chat.message import DisplayRole
from assistant_chat.session import ChatSession

logger = logging.getLogger(__name__)

FILES_PATH = "/files"


def file_url(file_id: str) -> str:
    return f"{FILES_PATH}/{file_id}"


def _append_to_last(session: ChatSession, text: str) -> ChatSession:
    if not session.messages:
        logger.warning("Dropping delta with no message to amend")
        return session
    return session.amend_last(text)


def on_text_created(session: ChatSession) -> ChatSession:
    return session.append_message(DisplayRole.ASSISTANT, "")


def on_text_delta(
    session: ChatSession,
    value: str | None,
    annotations: list[Annotation] | None = None,
) -> ChatSession:
    if value:
        session = _append_to_last(session, value)
    if annotations:
        session = on_annotate(session, annotations)
    return session


def on_annotate(
    session: ChatSession, annotations: list[Annotation]
) -> ChatSession:
    """Swap each file-path annotation's source text for a served file URL.

    Plain substring replacement of every occurrence; a source text that
    is not present leaves the message as it was.
    """
    last = session.last_message
    if last is None:
        return session
    text = last.text
    for annotation in annotations:
        if annotation.kind == "file_path" and annotation.text:
            text = text.replace(annotation.text, file_url(annotation.file_id))
    if text == last.text:
        return session
    return session.replace_last(last.model_copy(update={"text": text}))


def on_image_file_done(session: ChatSession, file_id: str) -> ChatSession:
    return _append_to_last(
        session, f"\n![{file_id}]({file_url(file_id)})\n"
    )


def on_tool_call_created(session: ChatSession, kind: str) -> ChatSession:
    # Only code interpreter calls are rendered.
    if kind == ToolCallKind.CODE:
        return session.append_message(DisplayRole.CODE, "")
    logger.debug(f"No rendering for {kind} tool call")
    return session


def on_tool_call_delta(
    session: ChatSession, kind: str, code_input: str | None
) -> ChatSession:
    if kind == ToolCallKind.CODE and code_input:
        return _append_to_last(session, code_input)
    return session


def reduce(session: ChatSession, event: StreamEvent) -> ChatSession:
    """Return the session that results from applying one event."""
    if isinstance(event, TextCreated):
        return on_text_created(session)
    if isinstance(event, TextDelta):
        return on_text_delta(session, event.value, event.annotations)
    if isinstance(event, ImageFileDone):
        return on_image_file_done(session, event.file_id)
    if isinstance(event, ToolCallCreated):
        return on_tool_call_created(session, event.kind)
    if isinstance(event, ToolCallDelta):
        return on_tool_call_delta(session, event.kind, event.code_input)
    if isinstance(event, RunCompleted):
        return session.unlock_input()
    if isinstance(event, RunFailed):
        logger.warning(
            f"Run {event.run_id} ended with status {event.status}: "
            f"{event.message}"
        )
        return session.unlock_input()
    return session


def reduce_all(
    session: ChatSession, events: Iterable[StreamEvent]
) -> ChatSession:
    for event in events:
        session = reduce(session, event)
    return session
