"""Tests for the HTTP endpoints and the WebSocket relay."""
import pytest
from fastapi.testclient import TestClient

from duet_chat.chat_models import AI_ASSISTANT_ID, chat_id
from duet_chat.server import HEALTH_PATH, WS_PATH, ChatServices
from duet_chat.standalone import create_app
from duet_chat.store import ChatStoreError, MemoryChatStore


class BrokenStore(MemoryChatStore):
    async def register_user_async(self, **kwargs):
        raise ChatStoreError("database down")

    async def list_users_async(self):
        raise ChatStoreError("database down")

    async def get_messages_async(self, chat_id):
        raise ChatStoreError("database down")


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client


def test_register_new_and_existing_user(client):
    response = client.post("/register", json={"name": "Jane", "phone": "555", "language": "fr"})
    assert response.status_code == 201
    assert response.json()["message"] == "User registered successfully."
    assert response.json()["user"]["uid"] == "555"
    assert response.json()["user"]["language"] == "fr"

    response = client.post("/register", json={"name": "Other", "phone": "555"})
    assert response.status_code == 200
    assert response.json()["message"] == "User already exists."
    assert response.json()["user"]["name"] == "Jane"


def test_register_requires_phone(client):
    response = client.post("/register", json={"name": "Jane"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Phone number is required."


def test_list_users(client):
    client.post("/register", json={"name": "A", "phone": "1"})
    client.post("/register", json={"name": "B", "phone": "2"})
    users = client.get("/users").json()
    assert [u["uid"] for u in users] == ["1", "2"]
    assert "lastSeen" in users[0]


def test_messages_are_symmetric(client, store):
    room = chat_id("1", "2")
    store.add_message(chat_id=room, sender_id="1", receiver_id="2", text="hello")
    store.add_message(chat_id=room, sender_id="2", receiver_id="1", text="hi")

    forward = client.get("/messages/1/2").json()
    backward = client.get("/messages/2/1").json()
    assert forward == backward
    assert [m["text"] for m in forward] == ["hello", "hi"]
    assert client.get("/messages/1/3").json() == []


def test_ask_ai(client, store):
    response = client.post("/ask-ai", json={"prompt": "Hi there", "userId": "1"})
    assert response.status_code == 200
    assert response.json() == {"response": "Hello from the assistant"}
    texts = [m.text for m in store.get_messages(chat_id("1", AI_ASSISTANT_ID))]
    assert texts == ["Hi there", "Hello from the assistant"]


@pytest.mark.parametrize("payload", [{"prompt": "", "userId": "1"}, {"prompt": "Hi"}, {}])
def test_ask_ai_requires_prompt_and_user(client, payload):
    response = client.post("/ask-ai", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "Prompt and userId are required."


def test_ask_ai_without_assistant(services):
    bare = ChatServices(config=services.config, store=services.store, relay=services.relay)
    with TestClient(create_app(services=bare)) as client:
        assert client.post("/ask-ai", json={"prompt": "Hi", "userId": "1"}).status_code == 503


def test_store_errors_map_to_500(services):
    from duet_chat.api import ChatRelay

    store = BrokenStore()
    broken = ChatServices(config=services.config, store=store, relay=ChatRelay(store=store))
    with TestClient(create_app(services=broken)) as client:
        response = client.post("/register", json={"name": "Jane", "phone": "1"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Server error during registration."
        assert client.get("/users").json()["detail"] == "Server error fetching users."
        assert client.get("/messages/1/2").json()["detail"] == "Server error fetching messages."


def test_health(client):
    body = client.get(HEALTH_PATH).json()
    assert body == {"status": "ok", "service": "duet-chat", "store": "memory", "online_users": 0, "assistant": True}


def test_websocket_chat_with_assistant(client):
    user = {"name": "Jane", "phone": "1", "uid": "1"}
    room = chat_id("1", AI_ASSISTANT_ID)
    with client.websocket_connect(WS_PATH) as ws:
        ws.send_json({"type": "user_signed_in", "user": user})
        update = ws.receive_json()
        assert update["type"] == "update_user_list"
        assert [u["uid"] for u in update["users"]] == ["1"]

        ws.send_json({"type": "join_chat", "chat_id": room})
        ws.send_json({"type": "send_message", "text": "Hello", "sender_id": "1", "receiver_id": AI_ASSISTANT_ID})
        first = ws.receive_json()
        second = ws.receive_json()
        assert first["type"] == second["type"] == "receive_message"
        assert first["message"]["text"] == "Hello"
        assert second["message"]["senderId"] == AI_ASSISTANT_ID

        ws.send_json({"type": "heartbeat"})
        assert ws.receive_json() == {"type": "heartbeat_ack"}

    assert client.get(HEALTH_PATH).json()["online_users"] == 0


def test_websocket_between_two_users(client):
    with client.websocket_connect(WS_PATH) as alice, client.websocket_connect(WS_PATH) as bob:
        alice.send_json({"type": "user_signed_in", "user": {"name": "Alice", "phone": "1", "uid": "1"}})
        assert alice.receive_json()["type"] == "update_user_list"
        assert bob.receive_json()["type"] == "update_user_list"

        bob.send_json({"type": "user_signed_in", "user": {"name": "Bob", "phone": "2", "uid": "2"}})
        assert {u["uid"] for u in alice.receive_json()["users"]} == {"1", "2"}
        assert {u["uid"] for u in bob.receive_json()["users"]} == {"1", "2"}

        alice.send_json({"type": "join_chat", "chat_id": "1_2"})
        bob.send_json({"type": "join_chat", "chat_id": "1_2"})
        # heartbeat round trip makes sure bob's join was handled
        bob.send_json({"type": "heartbeat"})
        assert bob.receive_json() == {"type": "heartbeat_ack"}

        alice.send_json({"type": "send_message", "text": "hi bob", "sender_id": "1", "receiver_id": "2"})
        assert alice.receive_json()["message"]["text"] == "hi bob"
        assert bob.receive_json()["message"]["text"] == "hi bob"


def test_websocket_rejects_invalid_json(client):
    with client.websocket_connect(WS_PATH) as ws:
        ws.send_text("not json")
        assert ws.receive_json()["error_type"] == "InvalidJSON"
        ws.send_text("[1, 2]")
        assert ws.receive_json()["error_type"] == "InvalidMessage"


def test_websocket_survives_malformed_events(client):
    with client.websocket_connect(WS_PATH) as ws:
        ws.send_json({"type": "user_signed_in", "user": {"name": "Jane", "phone": "1", "uid": "1"}})
        assert ws.receive_json()["type"] == "update_user_list"

        for event in (
            {"type": "join_chat", "chat_id": ["1", "2"]},
            {"type": "send_message", "text": 42, "sender_id": "1", "receiver_id": "2"},
            {"type": "send_message", "text": "hi", "sender_id": 1, "receiver_id": "2"},
        ):
            ws.send_json(event)
            assert ws.receive_json()["error_type"] == "InvalidMessage"

        ws.send_json({"type": "heartbeat"})
        assert ws.receive_json() == {"type": "heartbeat_ack"}
        assert client.get(HEALTH_PATH).json()["online_users"] == 1


def test_websocket_reports_handler_failures(services, monkeypatch):
    async def explode(conn, msg):
        raise RuntimeError("boom")

    with TestClient(create_app(services=services)) as client:
        with client.websocket_connect(WS_PATH) as ws:
            monkeypatch.setattr(services.relay, "handle_client_message", explode)
            ws.send_json({"type": "heartbeat"})
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["error_type"] == "RuntimeError"

            monkeypatch.undo()
            ws.send_json({"type": "heartbeat"})
            assert ws.receive_json() == {"type": "heartbeat_ack"}
