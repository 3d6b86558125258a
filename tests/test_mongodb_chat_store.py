import os
import uuid

import pytest

from duet_chat.chat_models import chat_id

MONGODB_URI = os.environ.get("MONGODB_CONNECTION")
pytestmark = pytest.mark.skipif(not MONGODB_URI, reason="MONGODB_CONNECTION not set")


@pytest.fixture(scope="module")
def mongo_store():
    from duet_chat.store.mongodb_chat_store import MongoDBChatStore

    db_name = f"test_duet_chat_{uuid.uuid4().hex[:8]}"
    store = MongoDBChatStore(mongo_uri=MONGODB_URI, mongo_db=db_name)
    store.ensure_indexes()
    yield store
    # Drop the database to ensure no data remains
    store._client.drop_database(db_name)
    store.close()


def test_mongodb_register_and_list_sync(mongo_store):
    phone = uuid.uuid4().hex[:10]
    user, created = mongo_store.register_user(name="Jane", phone=phone)
    assert created
    again, created = mongo_store.register_user(name="Other", phone=phone)
    assert not created
    assert again.name == "Jane"
    assert phone in [u.uid for u in mongo_store.list_users()]


def test_mongodb_messages_sync(mongo_store):
    room = chat_id(uuid.uuid4().hex, "ai_assistant")
    for i in range(12):
        mongo_store.add_message(chat_id=room, sender_id="u", receiver_id="ai_assistant", text=str(i))
    assert [m.text for m in mongo_store.get_messages(room)] == [str(i) for i in range(12)]
    assert [m.text for m in mongo_store.get_recent_messages(room, 10)] == [str(i) for i in range(2, 12)]


@pytest.mark.asyncio
async def test_mongodb_messages_async(mongo_store):
    phone = uuid.uuid4().hex[:10]
    _, created = await mongo_store.register_user_async(name="Async", phone=phone)
    assert created
    assert (await mongo_store.get_user_async(phone)).name == "Async"
    await mongo_store.touch_user_async(phone)

    room = chat_id(phone, "peer")
    first = await mongo_store.add_message_async(chat_id=room, sender_id=phone, receiver_id="peer", text="a")
    await mongo_store.add_message_async(chat_id=room, sender_id="peer", receiver_id=phone, text="b")
    assert first.id
    assert [m.text for m in await mongo_store.get_messages_async(room)] == ["a", "b"]
    assert [m.text for m in await mongo_store.get_recent_messages_async(room, 1)] == ["b"]
