import logging
from collections.abc import AsyncIterator

import httpx

from assistant_chat.errors import TransportError
from assistant_chat.events import ToolCallOutput

logger = logging.getLogger(__name__)


class ProxyTransport:
    """HTTP client for the chat proxy.

    ``post_message`` and ``submit_tool_outputs`` return the raw run
    stream; decoding is left to :mod:`assistant_chat.decoder`.

    Args:
        base_url: Root URL of the proxy, e.g. ``"http://localhost:8000"``.
        client: Preconfigured ``httpx.AsyncClient``; its ``base_url`` is
            used as-is when given.
        timeout: Connect/read timeout in seconds. ``None`` waits forever,
            which matches how long a run may take to stream.
    """

    def __init__(
        self,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout
        )

    async def __aenter__(self) -> "ProxyTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def create_thread(self) -> str:
        response = await self.client.post("/threads")
        if response.is_error:
            raise TransportError(response.status_code, response.text)
        thread_id = response.json()["threadId"]
        logger.info(f"Created thread {thread_id}")
        return thread_id

    def post_message(self, thread_id: str, content: str) -> AsyncIterator[bytes]:
        return self._stream(
            f"/threads/{thread_id}/messages", {"content": content}
        )

    def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        outputs: list[ToolCallOutput],
    ) -> AsyncIterator[bytes]:
        body = {
            "runId": run_id,
            "toolCallOutputs": [o.model_dump(by_alias=True) for o in outputs],
        }
        return self._stream(f"/threads/{thread_id}/actions", body)

    async def _stream(self, path: str, body: dict) -> AsyncIterator[bytes]:
        async with self.client.stream("POST", path, json=body) as response:
            if response.is_error:
                await response.aread()
                raise TransportError(response.status_code, response.text)
            async for chunk in response.aiter_bytes():
                yield chunk
