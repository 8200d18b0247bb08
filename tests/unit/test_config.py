import pytest

from assistant_chat.config import Settings
from assistant_chat.errors import ConfigurationError
from assistant_chat.provider import AssistantBackend


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    monkeypatch.setenv("OPENAI_ASSISTANT_ID", "asst_123")
    monkeypatch.delenv("ASSISTANT_CHAT_LOG_FILE", raising=False)

    settings = Settings.from_env()

    assert settings.openai_api_key == "sk-from-env"
    assert settings.assistant_id == "asst_123"
    assert settings.log_file == "assistant_chat.log"


def test_backend_requires_assistant_id():
    with pytest.raises(ConfigurationError, match="OPENAI_ASSISTANT_ID"):
        AssistantBackend(assistant_id="", api_key="sk-test")


def test_backend_reads_key_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    backend = AssistantBackend(assistant_id="asst_1")
    assert backend.client.api_key == "sk-from-env"


def test_backend_from_settings():
    backend = AssistantBackend.from_settings(
        Settings(openai_api_key="sk-x", assistant_id="asst_2")
    )
    assert backend.assistant_id == "asst_2"
    assert backend.client.api_key == "sk-x"
