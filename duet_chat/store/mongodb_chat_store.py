import logging
from datetime import datetime
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..chat_models import ChatMessageRecord, ChatUser, utc_now
from .chat_store import ChatStore, ChatStoreError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
MESSAGES_COLLECTION = "messages"

_ORDER_ASC = [("timestamp", ASCENDING), ("_id", ASCENDING)]
_ORDER_DESC = [("timestamp", DESCENDING), ("_id", DESCENDING)]


def _user_from_doc(doc: dict) -> ChatUser:
    return ChatUser(
        name=doc.get("name") or "",
        phone=doc["phone"],
        uid=doc["uid"],
        language=doc.get("language") or "en",
        last_seen=doc.get("last_seen") or utc_now(),
    )


def _message_from_doc(doc: dict) -> ChatMessageRecord:
    return ChatMessageRecord(
        id=str(doc["_id"]),
        chat_id=doc["chat_id"],
        sender_id=doc["sender_id"],
        receiver_id=doc["receiver_id"],
        text=doc.get("text") or "",
        translated_text=doc.get("translated_text"),
        timestamp=doc["timestamp"],
    )


def _message_doc(chat_id: str, sender_id: str, receiver_id: str, text: str) -> dict:
    return {
        "chat_id": chat_id,
        "sender_id": sender_id,
        "receiver_id": receiver_id,
        "text": text,
        "translated_text": None,
        "timestamp": utc_now(),
    }


class MongoDBChatStore(ChatStore):
    """Chat store persisting users and messages in MongoDB."""
    def __init__(self, *, mongo_uri: str, mongo_db: str):
        if not mongo_uri or not mongo_db:
            raise ValueError("MongoDB URI and database are required")
        self.mongo_uri = mongo_uri
        self.mongo_db = mongo_db
        self._client = MongoClient(mongo_uri, tz_aware=True)
        self._users = self._client[mongo_db][USERS_COLLECTION]
        self._messages = self._client[mongo_db][MESSAGES_COLLECTION]
        self._async_client = AsyncIOMotorClient(mongo_uri, tz_aware=True)
        self._async_users = self._async_client[mongo_db][USERS_COLLECTION]
        self._async_messages = self._async_client[mongo_db][MESSAGES_COLLECTION]

    @property
    def backend_name(self) -> str:
        return "mongodb"

    def ensure_indexes(self) -> None:
        """Create the unique user keys and the chat history index."""
        try:
            self._users.create_index("uid", unique=True)
            self._users.create_index("phone", unique=True)
            self._messages.create_index([("chat_id", ASCENDING), ("timestamp", ASCENDING)])
            logger.info(f"[STORE] Indexes ensured on database '{self.mongo_db}'")
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to create MongoDB indexes: {e}")

    # ── Users ─────────────────────────────────────────────────

    def register_user(self, *, name: str, phone: str, language: str = "en") -> Tuple[ChatUser, bool]:
        uid = phone
        try:
            doc = self._users.find_one({"uid": uid})
            if doc is not None:
                return _user_from_doc(doc), False
            user = ChatUser(name=name, phone=phone, uid=uid, language=language or "en")
            try:
                self._users.insert_one(user.model_dump())
            except DuplicateKeyError:
                # Registered concurrently by another request
                doc = self._users.find_one({"uid": uid})
                if doc is not None:
                    return _user_from_doc(doc), False
                raise
            logger.debug(f"[STORE] Registered user {uid}")
            return user, True
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to register user in MongoDB: {e}")

    async def register_user_async(self, *, name: str, phone: str, language: str = "en") -> Tuple[ChatUser, bool]:
        uid = phone
        try:
            doc = await self._async_users.find_one({"uid": uid})
            if doc is not None:
                return _user_from_doc(doc), False
            user = ChatUser(name=name, phone=phone, uid=uid, language=language or "en")
            try:
                await self._async_users.insert_one(user.model_dump())
            except DuplicateKeyError:
                doc = await self._async_users.find_one({"uid": uid})
                if doc is not None:
                    return _user_from_doc(doc), False
                raise
            logger.debug(f"[STORE] Registered user {uid} (async)")
            return user, True
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to register user in MongoDB (async): {e}")

    def get_user(self, uid: str) -> Optional[ChatUser]:
        try:
            doc = self._users.find_one({"uid": uid})
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to load user from MongoDB: {e}")
        return _user_from_doc(doc) if doc else None

    async def get_user_async(self, uid: str) -> Optional[ChatUser]:
        try:
            doc = await self._async_users.find_one({"uid": uid})
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to load user from MongoDB (async): {e}")
        return _user_from_doc(doc) if doc else None

    def list_users(self) -> List[ChatUser]:
        try:
            return [_user_from_doc(doc) for doc in self._users.find({}).sort("_id", ASCENDING)]
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to list users from MongoDB: {e}")

    async def list_users_async(self) -> List[ChatUser]:
        try:
            docs = await self._async_users.find({}).sort("_id", ASCENDING).to_list(length=None)
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to list users from MongoDB (async): {e}")
        return [_user_from_doc(doc) for doc in docs]

    def touch_user(self, uid: str, when: Optional[datetime] = None) -> None:
        try:
            self._users.update_one({"uid": uid}, {"$set": {"last_seen": when or utc_now()}})
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to update last_seen in MongoDB: {e}")

    async def touch_user_async(self, uid: str, when: Optional[datetime] = None) -> None:
        try:
            await self._async_users.update_one({"uid": uid}, {"$set": {"last_seen": when or utc_now()}})
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to update last_seen in MongoDB (async): {e}")

    # ── Messages ──────────────────────────────────────────────

    def add_message(self, *, chat_id: str, sender_id: str, receiver_id: str, text: str) -> ChatMessageRecord:
        doc = _message_doc(chat_id, sender_id, receiver_id, text)
        try:
            result = self._messages.insert_one(doc)
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to store message in MongoDB: {e}")
        doc["_id"] = result.inserted_id
        return _message_from_doc(doc)

    async def add_message_async(self, *, chat_id: str, sender_id: str, receiver_id: str, text: str) -> ChatMessageRecord:
        doc = _message_doc(chat_id, sender_id, receiver_id, text)
        try:
            result = await self._async_messages.insert_one(doc)
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to store message in MongoDB (async): {e}")
        doc["_id"] = result.inserted_id
        return _message_from_doc(doc)

    def get_messages(self, chat_id: str) -> List[ChatMessageRecord]:
        try:
            return [_message_from_doc(doc) for doc in self._messages.find({"chat_id": chat_id}).sort(_ORDER_ASC)]
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to load messages from MongoDB: {e}")

    async def get_messages_async(self, chat_id: str) -> List[ChatMessageRecord]:
        try:
            docs = await self._async_messages.find({"chat_id": chat_id}).sort(_ORDER_ASC).to_list(length=None)
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to load messages from MongoDB (async): {e}")
        return [_message_from_doc(doc) for doc in docs]

    def get_recent_messages(self, chat_id: str, limit: int) -> List[ChatMessageRecord]:
        if limit <= 0:
            return []
        try:
            docs = list(self._messages.find({"chat_id": chat_id}).sort(_ORDER_DESC).limit(limit))
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to load recent messages from MongoDB: {e}")
        return [_message_from_doc(doc) for doc in reversed(docs)]

    async def get_recent_messages_async(self, chat_id: str, limit: int) -> List[ChatMessageRecord]:
        if limit <= 0:
            return []
        try:
            cursor = self._async_messages.find({"chat_id": chat_id}).sort(_ORDER_DESC).limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise ChatStoreError(f"Failed to load recent messages from MongoDB (async): {e}")
        return [_message_from_doc(doc) for doc in reversed(docs)]

    def close(self) -> None:
        self._client.close()
        self._async_client.close()
