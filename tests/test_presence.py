"""Tests for the presence directory."""
from duet_chat.chat_models import ChatUser
from duet_chat.presence import PresenceDirectory


def _user(uid: str) -> ChatUser:
    return ChatUser(name=f"user {uid}", phone=uid, uid=uid)


def test_sign_in_and_out():
    presence = PresenceDirectory()
    entry = presence.sign_in(_user("1"), "conn-a")
    assert entry.connection_id == "conn-a"
    assert presence.is_online("1")
    assert presence.online_count == 1

    gone = presence.sign_out("conn-a")
    assert gone.uid == "1"
    assert not presence.is_online("1")
    assert presence.online_users() == []


def test_sign_out_unknown_connection_is_a_no_op():
    presence = PresenceDirectory()
    presence.sign_in(_user("1"), "conn-a")
    assert presence.sign_out("conn-x") is None
    assert presence.online_count == 1


def test_newer_sign_in_survives_stale_disconnect():
    presence = PresenceDirectory()
    presence.sign_in(_user("1"), "old")
    presence.sign_in(_user("1"), "new")
    assert presence.online_count == 1
    assert presence.get("1").connection_id == "new"

    assert presence.sign_out("old") is None
    assert presence.is_online("1")


def test_online_users_lists_every_user_once():
    presence = PresenceDirectory()
    presence.sign_in(_user("1"), "a")
    presence.sign_in(_user("2"), "b")
    presence.sign_in(_user("1"), "c")
    users = {u.uid: u.connection_id for u in presence.online_users()}
    assert users == {"1": "c", "2": "b"}


def test_connection_switching_user_holds_one_entry():
    presence = PresenceDirectory()
    presence.sign_in(_user("1"), "c")
    presence.sign_in(_user("2"), "c")
    assert [u.uid for u in presence.online_users()] == ["2"]

    assert presence.sign_out("c").uid == "2"
    assert presence.online_users() == []
