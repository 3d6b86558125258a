from .chat_store import ChatStore, ChatStoreError
from .memory_chat_store import MemoryChatStore


def __getattr__(name):
    """Lazy imports for optional dependencies."""
    if name == "MongoDBChatStore":
        from .mongodb_chat_store import MongoDBChatStore
        return MongoDBChatStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'ChatStore',
    'ChatStoreError',
    'MemoryChatStore',
    'MongoDBChatStore',
]
