"""Tests for chat ids and the wire format of the domain models."""
from datetime import datetime, timezone

from duet_chat.chat_models import AI_ASSISTANT_ID, ChatMessageRecord, ChatUser, OnlineUser, chat_id


def test_chat_id_is_symmetric():
    assert chat_id("alice", "bob") == chat_id("bob", "alice") == "alice_bob"


def test_chat_id_sorts_lexicographically():
    # phone numbers compare as strings, not numbers
    assert chat_id("9", "10") == "10_9"
    assert chat_id("5550001", AI_ASSISTANT_ID) == "5550001_ai_assistant"


def test_chat_id_same_user():
    assert chat_id("alice", "alice") == "alice_alice"


def test_message_wire_format_uses_camel_case():
    ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    msg = ChatMessageRecord(id="1", chat_id="a_b", sender_id="a", receiver_id="b", text="hi", timestamp=ts)
    wire = msg.to_wire()
    assert wire == {
        "id": "1",
        "chatId": "a_b",
        "senderId": "a",
        "receiverId": "b",
        "text": "hi",
        "translatedText": None,
        "timestamp": "2024-05-01T12:00:00Z",
    }


def test_user_accepts_camel_case_and_ignores_extras():
    user = ChatUser.model_validate({
        "name": "Jane",
        "phone": "123",
        "uid": "123",
        "lastSeen": "2024-05-01T12:00:00Z",
        "socketId": "abc",
    })
    assert user.uid == "123"
    assert user.language == "en"
    assert user.last_seen.year == 2024


def test_online_user_wire_format():
    user = OnlineUser(name="Jane", phone="123", uid="123", connection_id="c1")
    wire = user.to_wire()
    assert wire["connectionId"] == "c1"
    assert "lastSeen" in wire
