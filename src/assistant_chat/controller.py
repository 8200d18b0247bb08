import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing

import httpx

from assistant_chat.decoder import decode_stream
from assistant_chat.dispatcher import ToolCallDispatcher
from assistant_chat.errors import (
    MissingThreadError,
    StreamError,
    ToolDispatchError,
    TransportError,
)
from assistant_chat.events import TERMINAL_EVENTS, RunRequiresAction
from assistant_chat.instrumentation import record_error, send_span
from assistant_chat.message import DisplayMessage, DisplayRole
from assistant_chat.reducer import reduce
from assistant_chat.session import ChatSession
from assistant_chat.tools import ToolCallHandler
from assistant_chat.transport import ProxyTransport

logger = logging.getLogger(__name__)

RECOVERABLE_ERRORS = (
    MissingThreadError,
    TransportError,
    StreamError,
    httpx.HTTPError,
    TimeoutError,
    asyncio.TimeoutError,
)


class SessionController:
    """Drives one chat conversation against the proxy.

    Owns the current :class:`ChatSession` and replaces it as events
    arrive.  Input is locked while a send is in flight and is always
    unlocked once the attempt ends, whether the run completed or the
    attempt failed.

    Args:
        transport: Proxy client.
        handler: Tool-call handler used when a run requires action.
        run_timeout: Seconds allowed for a whole send attempt, tool
            round-trips included. ``None`` waits indefinitely.
        on_update: Called with the message list after every change.
        initial_messages: Messages shown before the first send.
    """

    def __init__(
        self,
        transport: ProxyTransport,
        handler: ToolCallHandler | None = None,
        run_timeout: float | None = None,
        on_update: Callable[[list[DisplayMessage]], None] | None = None,
        initial_messages: list[DisplayMessage] | None = None,
    ):
        self.transport = transport
        self.dispatcher = ToolCallDispatcher(transport, handler)
        self.run_timeout = run_timeout
        self.on_update = on_update
        self.session = ChatSession(messages=list(initial_messages or []))

    @property
    def messages(self) -> list[DisplayMessage]:
        return self.session.messages

    @property
    def input_locked(self) -> bool:
        return self.session.input_locked

    def _set_session(self, session: ChatSession) -> None:
        changed = session.messages != self.session.messages
        self.session = session
        if changed and self.on_update is not None:
            self.on_update(session.messages)

    async def start(self) -> str:
        """Create the conversation thread for this session."""
        thread_id = await self.transport.create_thread()
        self._set_session(self.session.with_thread(thread_id))
        return thread_id

    async def new_thread(self) -> str:
        """Forget the conversation and start over on a fresh thread."""
        self._set_session(ChatSession())
        return await self.start()

    async def send(self, text: str) -> ChatSession:
        """Post *text* and fold the streamed reply into the session."""
        if not text.strip() or self.session.input_locked:
            return self.session
        self._set_session(
            self.session.append_message(DisplayRole.USER, text).lock_input()
        )
        return await self._send(text)

    async def send_suggestion(self, text: str) -> ChatSession:
        """Send a canned question unless the user already asked it."""
        if self.session.has_user_message(text):
            return self.session
        return await self.send(text)

    async def _send(self, text: str) -> ChatSession:
        thread_id = self.session.thread_id
        async with send_span(thread_id) as span:
            try:
                if not thread_id:
                    raise MissingThreadError("No thread id set yet.")
                stream = self.transport.post_message(thread_id, text)
                await asyncio.wait_for(self._consume(stream), self.run_timeout)
            except RECOVERABLE_ERRORS as e:
                logger.error(f"send failed: {e!r}")
                record_error(span, e)
            except ToolDispatchError as e:
                record_error(span, e)
                raise
            finally:
                if self.session.input_locked:
                    self._set_session(self.session.unlock_input())
        return self.session

    async def _consume(self, stream: AsyncIterator[bytes]) -> None:
        while stream is not None:
            resumed = None
            async with aclosing(stream), aclosing(decode_stream(stream)) as events:
                async for event in events:
                    if isinstance(event, RunRequiresAction):
                        session, resumed = await self.dispatcher.dispatch(
                            self.session, event
                        )
                        self._set_session(session)
                        break
                    self._set_session(reduce(self.session, event))
                    if isinstance(event, TERMINAL_EVENTS):
                        return
            stream = resumed
