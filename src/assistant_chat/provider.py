import logging
import mimetypes
import os
from collections.abc import AsyncIterator

from openai import AsyncOpenAI

from assistant_chat.config import Settings
from assistant_chat.errors import ConfigurationError
from assistant_chat.events import ToolCallOutput

logger = logging.getLogger(__name__)


class AssistantBackend:
    """Thin wrapper over the OpenAI Assistants API.

    Thread, run and message lifecycle all live on the OpenAI side; this
    class only forwards calls and hands back the SDK's event streams.

    Args:
        assistant_id: Id of the assistant that runs on every thread.
        api_key: OpenAI key, defaults to ``OPENAI_API_KEY``.
        client: Preconfigured ``AsyncOpenAI`` client.
    """

    def __init__(
        self,
        assistant_id: str,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        if not assistant_id:
            raise ConfigurationError(
                "An assistant id is required. Set OPENAI_ASSISTANT_ID."
            )
        if client is None:
            if not api_key:
                api_key = os.getenv("OPENAI_API_KEY")
            client = AsyncOpenAI(
                api_key=api_key,
                max_retries=5,
                timeout=600.0
            )
        self.assistant_id = assistant_id
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssistantBackend":
        return cls(
            assistant_id=settings.assistant_id,
            api_key=settings.openai_api_key,
        )

    async def create_thread(self) -> str:
        thread = await self.client.beta.threads.create()
        logger.info(f"Created thread {thread.id}")
        return thread.id

    async def post_message(self, thread_id: str, content: str) -> AsyncIterator:
        """Add a user message, then start a run and return its events.

        The message is created before this returns so that API errors
        surface before any of the stream is sent.
        """
        await self.client.beta.threads.messages.create(
            thread_id,
            role="user",
            content=content,
        )
        return self._run_events(thread_id)

    async def _run_events(self, thread_id: str) -> AsyncIterator:
        async with self.client.beta.threads.runs.stream(
            thread_id=thread_id,
            assistant_id=self.assistant_id,
        ) as stream:
            async for event in stream:
                yield event

    async def submit_tool_outputs(
        self,
        thread_id: str,
        run_id: str,
        outputs: list[ToolCallOutput],
    ) -> AsyncIterator:
        logger.info(f"Resuming run {run_id} with {len(outputs)} outputs")
        async with self.client.beta.threads.runs.submit_tool_outputs_stream(
            thread_id=thread_id,
            run_id=run_id,
            tool_outputs=[
                {"tool_call_id": o.tool_call_id, "output": o.output}
                for o in outputs
            ],
        ) as stream:
            async for event in stream:
                yield event

    async def file_content(self, file_id: str) -> tuple[bytes, str]:
        """Return a stored file's bytes and a media type for serving it."""
        file = await self.client.files.retrieve(file_id)
        response = await self.client.files.content(file_id)
        media_type, _ = mimetypes.guess_type(file.filename or "")
        return response.content, media_type or "application/octet-stream"
