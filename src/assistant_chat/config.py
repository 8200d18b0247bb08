import os

from pydantic import BaseModel


class Settings(BaseModel):
    """Proxy settings, read from the environment by :meth:`from_env`.

    Example:
        OPENAI_API_KEY=sk-... OPENAI_ASSISTANT_ID=asst_... \\
            uvicorn assistant_chat.server:create_app --factory
    """

    openai_api_key: str | None = None
    assistant_id: str = ""
    log_file: str = "assistant_chat.log"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            assistant_id=os.getenv("OPENAI_ASSISTANT_ID", ""),
            log_file=os.getenv("ASSISTANT_CHAT_LOG_FILE", "assistant_chat.log"),
        )
