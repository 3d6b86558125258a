"""Realtime relay between chat clients.

RelayConnection — one client endpoint the relay can push events to
WebSocketConnection — RelayConnection backed by a starlette WebSocket
RoomRegistry — maps chat_id → connections that joined it
ChatRelay — presence, room fan-out and AI delegation for socket events
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ValidationError
from starlette.websockets import WebSocket, WebSocketState

from duet_chat.assistant import AssistantResponder
from duet_chat.chat_models import AI_ASSISTANT_ID, ChatMessageRecord, ChatUser, chat_id
from duet_chat.presence import PresenceDirectory
from duet_chat.store import ChatStore, ChatStoreError

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound=BaseModel)


# ── Client events ───────────────────────────────────────────────────


class JoinChatEvent(BaseModel):
    chat_id: str = ""


class SendMessageEvent(BaseModel):
    text: str = ""
    sender_id: str = ""
    receiver_id: str = ""


class SummarizeChatEvent(BaseModel):
    sender_id: str = ""
    receiver_id: str = ""


# ── Connections ─────────────────────────────────────────────────────


class RelayConnection(ABC):
    """A client the relay can send events to."""

    def __init__(self, connection_id: Optional[str] = None):
        self.connection_id = connection_id or uuid4().hex
        self.user: Optional[ChatUser] = None

    @abstractmethod
    async def send(self, msg: dict) -> None:
        """Deliver one event. Implementations must not raise on a dead peer."""
        pass


class WebSocketConnection(RelayConnection):
    """RelayConnection that sends events as JSON over a WebSocket."""

    def __init__(self, ws: WebSocket, connection_id: Optional[str] = None):
        super().__init__(connection_id)
        self._ws = ws

    async def send(self, msg: dict) -> None:
        if self._ws.client_state == WebSocketState.CONNECTED:
            try:
                await self._ws.send_json(msg)
            except Exception as e:
                logger.debug(f"[WS] Send to {self.connection_id} failed: {e}")


# ── Rooms ───────────────────────────────────────────────────────────


class RoomRegistry:
    """Tracks connections and the chat rooms they joined."""

    def __init__(self):
        self._connections: Dict[str, RelayConnection] = {}
        self._rooms: Dict[str, Set[str]] = {}

    def add_connection(self, conn: RelayConnection) -> None:
        self._connections[conn.connection_id] = conn

    def remove_connection(self, conn: RelayConnection) -> None:
        """Forget a connection and take it out of every room."""
        self._connections.pop(conn.connection_id, None)
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(conn.connection_id)
            if not members:
                del self._rooms[room]

    def join(self, room: str, conn: RelayConnection) -> None:
        self._rooms.setdefault(room, set()).add(conn.connection_id)

    def members(self, room: str) -> List[RelayConnection]:
        ids = self._rooms.get(room, set())
        return [self._connections[cid] for cid in ids if cid in self._connections]

    def rooms_of(self, conn: RelayConnection) -> Set[str]:
        return {room for room, ids in self._rooms.items() if conn.connection_id in ids}

    def all_connections(self) -> List[RelayConnection]:
        return list(self._connections.values())

    @property
    def connection_count(self) -> int:
        return len(self._connections)


# ── Relay ───────────────────────────────────────────────────────────


class ChatRelay:
    """Handles socket events: sign-in, room joins, messages and summaries."""

    def __init__(
        self,
        *,
        store: ChatStore,
        assistant: Optional[AssistantResponder] = None,
        presence: Optional[PresenceDirectory] = None,
        rooms: Optional[RoomRegistry] = None,
    ):
        self.store = store
        self.assistant = assistant
        self.presence = presence or PresenceDirectory()
        self.rooms = rooms or RoomRegistry()

    # ── Fan-out ───────────────────────────────────────────────

    async def broadcast(self, msg: dict) -> None:
        """Send ``msg`` to every connection."""
        for conn in self.rooms.all_connections():
            await conn.send(msg)

    async def emit_to_room(self, room: str, msg: dict) -> None:
        for conn in self.rooms.members(room):
            await conn.send(msg)

    async def broadcast_user_list(self) -> None:
        await self.broadcast({
            "type": "update_user_list",
            "users": [u.to_wire() for u in self.presence.online_users()],
        })

    async def _emit_message(self, message: ChatMessageRecord) -> None:
        await self.emit_to_room(message.chat_id, {
            "type": "receive_message",
            "message": message.to_wire(),
        })

    @staticmethod
    async def _send_error(conn: RelayConnection, error_type: str, message: str) -> None:
        await conn.send({"type": "error", "error_type": error_type, "message": message})

    async def _parse(self, conn: RelayConnection, model: Type[EventT], msg: dict) -> Optional[EventT]:
        """Validate an event payload; answers InvalidMessage and returns None on bad fields."""
        try:
            return model.model_validate(msg)
        except ValidationError as e:
            logger.warning(f"[RELAY] Malformed {msg.get('type')} from {conn.connection_id}: {e.error_count()} errors")
            await self._send_error(conn, "InvalidMessage", f"Malformed {msg.get('type')} event")
            return None

    # ── Connection lifecycle ──────────────────────────────────

    def connect(self, conn: RelayConnection) -> None:
        self.rooms.add_connection(conn)
        logger.info(f"[RELAY] Connection {conn.connection_id} opened ({self.rooms.connection_count} open)")

    async def disconnect(self, conn: RelayConnection) -> None:
        """Drop the connection, its rooms and its presence entry."""
        self.rooms.remove_connection(conn)
        gone = self.presence.sign_out(conn.connection_id)
        if gone is not None:
            try:
                await self.store.touch_user_async(gone.uid)
            except ChatStoreError as e:
                logger.error(f"[RELAY] Could not update last_seen of {gone.uid}: {e}")
            await self.broadcast_user_list()
        logger.info(f"[RELAY] Connection {conn.connection_id} closed ({self.rooms.connection_count} open)")

    # ── Event handlers ────────────────────────────────────────

    async def sign_in(self, conn: RelayConnection, user: ChatUser) -> None:
        conn.user = user
        self.presence.sign_in(user, conn.connection_id)
        await self.broadcast_user_list()

    def join_chat(self, conn: RelayConnection, room: str) -> None:
        self.rooms.join(room, conn)
        logger.debug(f"[RELAY] {conn.connection_id} joined {room}")

    async def send_message(self, conn: RelayConnection, *, sender_id: str, receiver_id: str, text: str) -> None:
        """Store a message, emit it to the chat room and let the assistant answer when addressed."""
        room = chat_id(sender_id, receiver_id)
        try:
            message = await self.store.add_message_async(
                chat_id=room, sender_id=sender_id, receiver_id=receiver_id, text=text,
            )
        except ChatStoreError as e:
            logger.error(f"[RELAY] Error handling message: {e}")
            await self._send_error(conn, "StoreError", "Message could not be saved.")
            return
        await self._emit_message(message)

        if receiver_id != AI_ASSISTANT_ID:
            return
        if self.assistant is None:
            logger.warning("[RELAY] Message for the assistant but no assistant is configured")
            return
        try:
            reply = await self.assistant.reply(sender_id)
        except ChatStoreError as e:
            logger.error(f"[RELAY] Error handling assistant reply: {e}")
            await self._send_error(conn, "StoreError", "Assistant reply could not be saved.")
            return
        await self._emit_message(reply)

    async def summarize_chat(self, conn: RelayConnection, *, sender_id: str, receiver_id: str) -> None:
        room = chat_id(sender_id, receiver_id)
        if self.assistant is None:
            await self._send_error(conn, "AssistantUnavailable", "No assistant is configured.")
            return
        try:
            summary = await self.assistant.summarize(sender_id, receiver_id)
        except ChatStoreError as e:
            logger.error(f"[RELAY] Error summarizing {room}: {e}")
            await self._send_error(conn, "StoreError", "Chat could not be loaded.")
            return
        await conn.send({"type": "chat_summary", "chat_id": room, "summary": summary})

    # ── Dispatch ──────────────────────────────────────────────

    async def handle_client_message(self, conn: RelayConnection, msg: dict) -> None:
        """Dispatch a client event to the appropriate handler."""
        msg_type = msg.get("type", "")
        own_uid = conn.user.uid if conn.user else ""

        if msg_type == "user_signed_in":
            try:
                user = ChatUser.model_validate(msg.get("user") or {})
            except ValidationError:
                await self._send_error(conn, "InvalidUser", "user_signed_in requires a user with phone and uid")
                return
            await self.sign_in(conn, user)

        elif msg_type == "join_chat":
            event = await self._parse(conn, JoinChatEvent, msg)
            if event and event.chat_id:
                self.join_chat(conn, event.chat_id)

        elif msg_type == "send_message":
            event = await self._parse(conn, SendMessageEvent, msg)
            if event is None:
                return
            text = event.text.strip()
            sender_id = event.sender_id or own_uid
            if text and sender_id and event.receiver_id:
                await self.send_message(conn, sender_id=sender_id, receiver_id=event.receiver_id, text=text)

        elif msg_type == "summarize_chat":
            event = await self._parse(conn, SummarizeChatEvent, msg)
            if event is None:
                return
            sender_id = event.sender_id or own_uid
            if sender_id and event.receiver_id:
                await self.summarize_chat(conn, sender_id=sender_id, receiver_id=event.receiver_id)

        elif msg_type == "heartbeat":
            await conn.send({"type": "heartbeat_ack"})

        else:
            logger.warning(f"[RELAY] Unknown message type: {msg_type}")
