"""Domain models shared by the store, the relay and the HTTP API.

ChatUser — a registered user (uid is the phone number).
ChatMessageRecord — a persisted chat message between two users.
OnlineUser — a signed-in user together with the connection it signed in on.

All models serialize with camelCase keys for the browser side.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AI_ASSISTANT_ID = "ai_assistant"
"""Reserved user id of the synthetic peer answered by the LLM."""

AI_ASSISTANT_NAME = "AI Assistant"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def chat_id(id1: str, id2: str) -> str:
    """Return the conversation key for a pair of users.

    Both ids are sorted lexicographically and joined with ``_`` so the key is
    the same no matter who sends.
    """
    return "_".join(sorted([id1, id2]))


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump as JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ChatUser(_WireModel):
    """A registered chat user."""
    name: str = ""
    phone: str
    uid: str
    language: str = "en"
    last_seen: datetime = Field(default_factory=utc_now)


class ChatMessageRecord(_WireModel):
    """A single stored message."""
    id: Optional[str] = None
    chat_id: str
    sender_id: str
    receiver_id: str
    text: str
    translated_text: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)


class OnlineUser(ChatUser):
    """A user currently signed in on a relay connection."""
    connection_id: str
