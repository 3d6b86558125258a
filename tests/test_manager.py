"""Tests for LLM manager functionality."""
import pytest

from duet_chat.llm_provider_manager import LLMManager
from duet_chat.providers import PROVIDERS, get_provider
from duet_chat.providers.google.google_client import GoogleClient
from duet_chat.providers.openai.openai_client import OpenAIChatClient

KEYS = ["GEMINI_API_KEY", "GEMINI_KEY", "OPENAI_API_KEY", "OPENAI_BASE_URL"]


@pytest.fixture
def manager(monkeypatch):
    """LLM manager with test keys for all providers."""
    monkeypatch.setenv("GEMINI_API_KEY", "test_key")
    monkeypatch.setenv("OPENAI_API_KEY", "test_key")
    return LLMManager()


def test_registered_providers():
    assert set(PROVIDERS) == LLMManager.SUPPORTED_PROVIDERS
    with pytest.raises(ValueError):
        get_provider("anthropic")


def test_init_with_partial_keys(monkeypatch):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GEMINI_KEY", "test_key")

    manager = LLMManager()

    assert set(manager.providers) == {"google"}
    assert {llm.provider for llm in manager.get_available_llms()} == {"google"}
    with pytest.raises(ValueError, match="Provider openai is not available"):
        manager.create_client("openai")


def test_init_without_keys(monkeypatch):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)
    assert LLMManager().providers == {}


def test_get_provider_for_model(manager):
    assert manager.get_provider_for_model("gemini-2.5-flash") == "google"
    assert manager.get_provider_for_model("openai:gpt-4.1") == "openai"
    with pytest.raises(ValueError) as exc_info:
        manager.get_provider_for_model("invalid-model")
    assert "Model invalid-model not found" in str(exc_info.value)


def test_get_model_info(manager):
    info = manager.get_model_info("google:gemini-2.5-pro")
    assert info.provider == "google"
    assert info.model == "gemini-2.5-pro"


def test_create_client_uses_smallest_model_by_default(manager):
    client = manager.create_client("google")
    assert isinstance(client, GoogleClient)
    assert client.model == "gemini-2.5-flash"

    client = manager.create_client("openai", model="gpt-4.1", temperature=0.2)
    assert isinstance(client, OpenAIChatClient)
    assert client.model == "gpt-4.1"
    assert client.temperature == 0.2


def test_create_client_unknown_model(manager):
    with pytest.raises(ValueError, match="not found"):
        manager.create_client("google", model="gpt-4.1")


def test_keys_from_explicit_mapping():
    manager = LLMManager(env={"OPENAI_API_KEY": "test_key", "OPENAI_BASE_URL": "http://localhost:8000/v1"})
    assert set(manager.providers) == {"openai"}
    assert manager.providers["openai"].base_url == "http://localhost:8000/v1"
    assert manager.create_client("openai").model == "gpt-4.1-mini"


def test_provider_without_key_refuses_to_create_clients():
    provider = get_provider("google")(env={})
    assert not provider.is_available
    with pytest.raises(ValueError, match="GEMINI_API_KEY or GEMINI_KEY"):
        provider.create_client("gemini-2.5-flash")
