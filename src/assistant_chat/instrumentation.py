"""Optional OpenTelemetry instrumentation for assistant_chat.

Call ``assistant_chat.instrument()`` once at startup to enable tracing.
Requires ``opentelemetry-api`` to be installed; the chat client
works identically without it.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "assistant_chat") -> None:
    """Enable OpenTelemetry tracing for sends and tool dispatch.

    Call once at startup, after configuring your TracerProvider.
    Requires ``opentelemetry-api``: ``pip install assistant-chat[otel]``

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install assistant-chat[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured, spans will be "
            "discarded. Set up a TracerProvider to export "
            "traces."
        )
    else:
        logger.info("assistant_chat instrumentation enabled")


def uninstrument() -> None:
    """Disable OpenTelemetry tracing."""
    global _tracer
    _tracer = None


@asynccontextmanager
async def send_span(thread_id: str):
    """Wrap one send attempt, from posting the message to the run's end."""
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        "chat send",
        attributes={
            "gen_ai.operation.name": "chat",
            "gen_ai.conversation.id": thread_id,
        },
    ) as span:
        yield span


@asynccontextmanager
async def dispatch_span(run_id: str, tool_call_count: int):
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        "submit_tool_outputs",
        attributes={
            "assistant_chat.run.id": run_id,
            "assistant_chat.tool_call.count": tool_call_count,
        },
    ) as span:
        yield span


@asynccontextmanager
async def tool_span(tool_name: str, call_id: str):
    """Wrap a tool handler call in an ``execute_tool`` span."""
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        f"execute_tool {tool_name}",
        attributes={
            "gen_ai.operation.name": "execute_tool",
            "gen_ai.tool.name": tool_name,
            "gen_ai.tool.call.id": call_id,
        },
    ) as span:
        yield span


def record_error(span, exception: BaseException) -> None:
    """Record an exception and set ERROR status on a span.

    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    span.record_exception(exception)
    span.set_attribute(
        "error.type", type(exception).__qualname__
    )
