"""Test configuration and fixtures."""
from typing import List, Optional

import pytest

from duet_chat.api import ChatRelay, RelayConnection
from duet_chat.assistant import AssistantResponder
from duet_chat.config import ChatServerConfig, StoreBackend
from duet_chat.llm_base_client import LlmClient
from duet_chat.messages import LlmAIMessage
from duet_chat.server import ChatServices
from duet_chat.store import MemoryChatStore


class FakeLlmClient(LlmClient):
    """LLM client returning canned answers and recording what it was sent."""

    def __init__(self, reply: str = "Hello from the assistant", error: Optional[Exception] = None):
        super().__init__("fake-model")
        self.reply = reply
        self.error = error
        self.calls: List[list] = []

    def invoke(self, messages):
        self.calls.append(list(messages))
        if self.error:
            raise self.error
        return LlmAIMessage(content=self.reply)

    async def ainvoke(self, messages):
        return self.invoke(messages)


class RecordingConnection(RelayConnection):
    """Relay connection collecting every event it receives."""

    def __init__(self, connection_id: Optional[str] = None):
        super().__init__(connection_id)
        self.events: List[dict] = []

    async def send(self, msg: dict) -> None:
        self.events.append(msg)

    def of_type(self, msg_type: str) -> List[dict]:
        return [e for e in self.events if e["type"] == msg_type]


@pytest.fixture
def store():
    return MemoryChatStore()


@pytest.fixture
def llm_client():
    return FakeLlmClient()


@pytest.fixture
def assistant(store, llm_client):
    return AssistantResponder(store=store, client=llm_client, history_limit=10)


@pytest.fixture
def relay(store, assistant):
    return ChatRelay(store=store, assistant=assistant)


@pytest.fixture
def services(store, assistant, relay):
    config = ChatServerConfig(store_backend=StoreBackend.MEMORY, enable_ui=False)
    return ChatServices(config=config, store=store, relay=relay, assistant=assistant)
