from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from ..chat_models import ChatMessageRecord, ChatUser


class ChatStoreError(RuntimeError):
    """Raised when the backing document store fails."""


class ChatStore(ABC):
    """Base class for user and message persistence.

    Every operation exists in a blocking and an ``_async`` flavour.
    """

    @abstractmethod
    def register_user(self, *, name: str, phone: str, language: str = "en") -> Tuple[ChatUser, bool]:
        """Register a user keyed by phone number.

        Returns the stored user and whether it was newly created. An existing
        user is returned unchanged.
        """
        raise NotImplementedError("Subclasses must implement register_user")

    @abstractmethod
    def get_user(self, uid: str) -> Optional[ChatUser]:
        raise NotImplementedError("Subclasses must implement get_user")

    @abstractmethod
    def list_users(self) -> List[ChatUser]:
        """All registered users in registration order."""
        raise NotImplementedError("Subclasses must implement list_users")

    @abstractmethod
    def touch_user(self, uid: str, when: Optional[datetime] = None) -> None:
        """Update ``last_seen`` of a user, ignoring unknown ids."""
        raise NotImplementedError("Subclasses must implement touch_user")

    @abstractmethod
    def add_message(self, *, chat_id: str, sender_id: str, receiver_id: str, text: str) -> ChatMessageRecord:
        raise NotImplementedError("Subclasses must implement add_message")

    @abstractmethod
    def get_messages(self, chat_id: str) -> List[ChatMessageRecord]:
        """All messages of a chat, oldest first."""
        raise NotImplementedError("Subclasses must implement get_messages")

    @abstractmethod
    def get_recent_messages(self, chat_id: str, limit: int) -> List[ChatMessageRecord]:
        """The newest ``limit`` messages of a chat, oldest first."""
        raise NotImplementedError("Subclasses must implement get_recent_messages")

    @abstractmethod
    async def register_user_async(self, *, name: str, phone: str, language: str = "en") -> Tuple[ChatUser, bool]:
        raise NotImplementedError("Subclasses must implement register_user_async")

    @abstractmethod
    async def get_user_async(self, uid: str) -> Optional[ChatUser]:
        raise NotImplementedError("Subclasses must implement get_user_async")

    @abstractmethod
    async def list_users_async(self) -> List[ChatUser]:
        raise NotImplementedError("Subclasses must implement list_users_async")

    @abstractmethod
    async def touch_user_async(self, uid: str, when: Optional[datetime] = None) -> None:
        raise NotImplementedError("Subclasses must implement touch_user_async")

    @abstractmethod
    async def add_message_async(self, *, chat_id: str, sender_id: str, receiver_id: str, text: str) -> ChatMessageRecord:
        raise NotImplementedError("Subclasses must implement add_message_async")

    @abstractmethod
    async def get_messages_async(self, chat_id: str) -> List[ChatMessageRecord]:
        raise NotImplementedError("Subclasses must implement get_messages_async")

    @abstractmethod
    async def get_recent_messages_async(self, chat_id: str, limit: int) -> List[ChatMessageRecord]:
        raise NotImplementedError("Subclasses must implement get_recent_messages_async")

    @property
    def backend_name(self) -> str:
        return type(self).__name__

    def close(self) -> None:
        """Release connections held by the store."""
        pass
