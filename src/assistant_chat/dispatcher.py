import asyncio
import logging
from collections.abc import AsyncIterator

from assistant_chat.errors import ToolDispatchError
from assistant_chat.events import RunRequiresAction, ToolCallOutput, ToolCallRequest
from assistant_chat.instrumentation import dispatch_span, record_error, tool_span
from assistant_chat.session import ChatSession
from assistant_chat.tools import ToolCallHandler, default_handler
from assistant_chat.transport import ProxyTransport

logger = logging.getLogger(__name__)


class ToolCallDispatcher:
    """Resolves a paused run's tool calls and resumes it.

    All handler calls for a batch run concurrently.  If one raises, the
    others are cancelled and awaited before the error propagates, and
    nothing is submitted.

    Args:
        transport: Used to submit outputs and open the resumed stream.
        handler: Async callable mapping a :class:`ToolCallRequest` to its
            string output.
    """

    def __init__(
        self,
        transport: ProxyTransport,
        handler: ToolCallHandler | None = None,
    ):
        self.transport = transport
        self.handler = handler or default_handler

    async def resolve(
        self, tool_calls: list[ToolCallRequest]
    ) -> list[ToolCallOutput]:
        tasks = [
            asyncio.ensure_future(self._call(tc)) for tc in tool_calls
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except ToolDispatchError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _call(self, tool_call: ToolCallRequest) -> ToolCallOutput:
        async with tool_span(tool_call.name or tool_call.kind, tool_call.id) as span:
            try:
                output = await self.handler(tool_call)
            except Exception as e:
                logger.error(f"Tool call {tool_call.id} raised: {e}")
                record_error(span, e)
                raise ToolDispatchError(tool_call.id, e) from e
        return ToolCallOutput(tool_call_id=tool_call.id, output=output)

    async def dispatch(
        self,
        session: ChatSession,
        event: RunRequiresAction,
    ) -> tuple[ChatSession, AsyncIterator[bytes]]:
        """Run the handlers, lock input and submit the outputs.

        Returns the locked session and the resumed run stream.
        """
        async with dispatch_span(event.run_id, len(event.tool_calls)) as span:
            try:
                outputs = await self.resolve(event.tool_calls)
            except ToolDispatchError as e:
                record_error(span, e)
                raise
        logger.info(
            f"Submitting {len(outputs)} tool outputs for run {event.run_id}"
        )
        session = session.lock_input()
        stream = self.transport.submit_tool_outputs(
            session.thread_id, event.run_id, outputs
        )
        return session, stream
