"""duet-chat — realtime two-party chat with an AI assistant peer."""

from duet_chat.chat_models import (
    AI_ASSISTANT_ID, ChatMessageRecord, ChatUser, OnlineUser, chat_id,
)
from duet_chat.config import ChatServerConfig, ConfigError
from duet_chat.store import ChatStore, ChatStoreError, MemoryChatStore
from duet_chat.presence import PresenceDirectory
from duet_chat.assistant import AssistantResponder
from duet_chat.api import ChatRelay, RelayConnection
from duet_chat.llm_provider_manager import LLMManager

__all__ = [
    "AI_ASSISTANT_ID",
    "ChatMessageRecord",
    "ChatUser",
    "OnlineUser",
    "chat_id",
    "ChatServerConfig",
    "ConfigError",
    "ChatStore",
    "ChatStoreError",
    "MemoryChatStore",
    "MongoDBChatStore",
    "PresenceDirectory",
    "AssistantResponder",
    "ChatRelay",
    "RelayConnection",
    "LLMManager",
    "ChatPage",
]


def __getattr__(name: str):
    if name == "ChatPage":
        from duet_chat.chat_page import ChatPage
        return ChatPage
    if name == "MongoDBChatStore":
        from duet_chat.store.mongodb_chat_store import MongoDBChatStore
        return MongoDBChatStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
