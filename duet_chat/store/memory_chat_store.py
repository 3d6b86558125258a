import itertools
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..chat_models import ChatMessageRecord, ChatUser, utc_now
from .chat_store import ChatStore

logger = logging.getLogger(__name__)


class MemoryChatStore(ChatStore):
    """Chat store keeping users and messages in process memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, ChatUser] = {}
        self._messages: Dict[str, List[ChatMessageRecord]] = {}
        self._ids = itertools.count(1)

    @property
    def backend_name(self) -> str:
        return "memory"

    def register_user(self, *, name: str, phone: str, language: str = "en") -> Tuple[ChatUser, bool]:
        uid = phone
        with self._lock:
            existing = self._users.get(uid)
            if existing is not None:
                logger.debug(f"[STORE] User {uid} already registered")
                return existing.model_copy(), False
            user = ChatUser(name=name, phone=phone, uid=uid, language=language or "en")
            self._users[uid] = user
            logger.debug(f"[STORE] Registered user {uid}")
            return user.model_copy(), True

    def get_user(self, uid: str) -> Optional[ChatUser]:
        with self._lock:
            user = self._users.get(uid)
            return user.model_copy() if user else None

    def list_users(self) -> List[ChatUser]:
        with self._lock:
            return [u.model_copy() for u in self._users.values()]

    def touch_user(self, uid: str, when: Optional[datetime] = None) -> None:
        with self._lock:
            user = self._users.get(uid)
            if user is not None:
                user.last_seen = when or utc_now()

    def add_message(self, *, chat_id: str, sender_id: str, receiver_id: str, text: str) -> ChatMessageRecord:
        with self._lock:
            message = ChatMessageRecord(
                id=str(next(self._ids)),
                chat_id=chat_id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                text=text,
            )
            self._messages.setdefault(chat_id, []).append(message)
            return message.model_copy()

    def get_messages(self, chat_id: str) -> List[ChatMessageRecord]:
        with self._lock:
            # sorted() is stable, so equal timestamps keep insertion order
            messages = sorted(self._messages.get(chat_id, []), key=lambda m: m.timestamp)
            return [m.model_copy() for m in messages]

    def get_recent_messages(self, chat_id: str, limit: int) -> List[ChatMessageRecord]:
        if limit <= 0:
            return []
        return self.get_messages(chat_id)[-limit:]

    async def register_user_async(self, *, name: str, phone: str, language: str = "en") -> Tuple[ChatUser, bool]:
        return self.register_user(name=name, phone=phone, language=language)

    async def get_user_async(self, uid: str) -> Optional[ChatUser]:
        return self.get_user(uid)

    async def list_users_async(self) -> List[ChatUser]:
        return self.list_users()

    async def touch_user_async(self, uid: str, when: Optional[datetime] = None) -> None:
        self.touch_user(uid, when)

    async def add_message_async(self, *, chat_id: str, sender_id: str, receiver_id: str, text: str) -> ChatMessageRecord:
        return self.add_message(chat_id=chat_id, sender_id=sender_id, receiver_id=receiver_id, text=text)

    async def get_messages_async(self, chat_id: str) -> List[ChatMessageRecord]:
        return self.get_messages(chat_id)

    async def get_recent_messages_async(self, chat_id: str, limit: int) -> List[ChatMessageRecord]:
        return self.get_recent_messages(chat_id, limit)
