# uvicorn assistant_chat.server:create_app --factory --reload --port 8000
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from openai import APIConnectionError, APIStatusError
from pydantic import BaseModel, ConfigDict, Field

from assistant_chat.config import Settings
from assistant_chat.errors import ConfigurationError
from assistant_chat.events import ToolCallOutput
from assistant_chat.provider import AssistantBackend
from assistant_chat.wire import MEDIA_TYPE, ndjson_stream

logger = logging.getLogger(__name__)


def configure_logging(log_file: str) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s:%(name)s:%(levelname)s:%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


class PostMessageRequest(BaseModel):
    content: str


class SubmitActionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(alias="runId")
    tool_call_outputs: list[ToolCallOutput] = Field(alias="toolCallOutputs")


def get_backend(request: Request) -> AssistantBackend:
    """Build the backend on first use so the app starts without credentials."""
    state = request.app.state
    if state.backend is None:
        state.backend = AssistantBackend.from_settings(state.settings)
    return state.backend


def create_app(
    backend: AssistantBackend | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_file)

    app = FastAPI(title="Assistant Chat")
    app.state.backend = backend
    app.state.settings = settings

    @app.exception_handler(APIStatusError)
    async def api_status_error(request: Request, exc: APIStatusError):
        logger.error(f"{request.url.path}: upstream {exc.status_code}: {exc.message}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(APIConnectionError)
    async def api_connection_error(request: Request, exc: APIConnectionError):
        logger.error(f"{request.url.path}: {exc}")
        return JSONResponse({"error": "Assistant API unreachable"}, status_code=502)

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError):
        logger.error(str(exc))
        return JSONResponse({"error": str(exc)}, status_code=500)

    # --- conversation threads ---
    @app.post("/threads")
    async def create_thread(
        backend: AssistantBackend = Depends(get_backend),
    ) -> dict[str, str]:
        return {"threadId": await backend.create_thread()}

    @app.post("/threads/{thread_id}/messages")
    async def post_message(
        thread_id: str,
        body: PostMessageRequest,
        backend: AssistantBackend = Depends(get_backend),
    ) -> StreamingResponse:
        events = await backend.post_message(thread_id, body.content)
        return StreamingResponse(ndjson_stream(events), media_type=MEDIA_TYPE)

    @app.post("/threads/{thread_id}/actions")
    async def submit_actions(
        thread_id: str,
        body: SubmitActionsRequest,
        backend: AssistantBackend = Depends(get_backend),
    ) -> StreamingResponse:
        events = backend.submit_tool_outputs(
            thread_id, body.run_id, body.tool_call_outputs
        )
        return StreamingResponse(ndjson_stream(events), media_type=MEDIA_TYPE)

    # --- files referenced from assistant replies ---
    @app.get("/files/{file_id}")
    async def get_file(
        file_id: str,
        backend: AssistantBackend = Depends(get_backend),
    ) -> Response:
        content, media_type = await backend.file_content(file_id)
        return Response(content=content, media_type=media_type)

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    return app


def main() -> None:
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
