"""NiceGUI integration for the duet-chat page.

Provides :class:`ChatPage`, which mounts a single-page chat UI on a FastAPI
app, and :class:`ChatView`, the per-browser-tab state behind it.

Each tab talks to the :class:`~duet_chat.api.ChatRelay` in-process through a
:class:`UiConnection`, so it receives the same ``update_user_list`` and
``receive_message`` events as WebSocket clients.

Usage::

    services = build_services(ChatServerConfig.from_env())
    ChatPage(services).attach(app, storage_secret="...")
"""

import logging
from typing import Dict, List, Optional

from nicegui import Client, ui

from duet_chat.api import RelayConnection
from duet_chat.chat_models import (
    AI_ASSISTANT_ID, AI_ASSISTANT_NAME, ChatMessageRecord, ChatUser, chat_id,
)
from duet_chat.store import ChatStoreError

logger = logging.getLogger(__name__)

LANGUAGES = {
    "en": "English",
    "hi": "Hindi",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
}


class UiConnection(RelayConnection):
    """RelayConnection that forwards relay events to a ChatView."""

    def __init__(self, view: "ChatView"):
        super().__init__()
        self._view = view

    async def send(self, msg: dict) -> None:
        try:
            self._view.on_event(msg)
        except Exception as e:
            logger.debug(f"[UI] Event delivery to {self.connection_id} failed: {e}")


class ChatView:
    """State and widgets of one browser tab."""

    def __init__(self, services) -> None:
        self.services = services
        self.relay = services.relay
        self.store = services.store
        self.client: Optional[Client] = None
        self.connection = UiConnection(self)

        self.user: Optional[ChatUser] = None
        self.peers: List[ChatUser] = []
        self.online: Dict[str, str] = {}
        self.active_peer: Optional[ChatUser] = None
        self.messages: List[ChatMessageRecord] = []
        self.register_mode = True
        self.error = ""

    # ── Relay events ──────────────────────────────────────────

    def on_event(self, msg: dict) -> None:
        """Apply a relay event to the view."""
        msg_type = msg.get("type")
        if msg_type == "update_user_list":
            self.online = {u["uid"]: u.get("connectionId", "") for u in msg.get("users", [])}
            self.sidebar.refresh()
        elif msg_type == "receive_message":
            message = ChatMessageRecord.model_validate(msg["message"])
            if self.active_peer and self.user and message.chat_id == chat_id(self.user.uid, self.active_peer.uid):
                self.messages.append(message)
                self.message_list.refresh()
        elif msg_type == "chat_summary":
            self._show_summary(msg.get("summary", ""))
        elif msg_type == "error":
            with self.client:
                ui.notify(msg.get("message", "Something went wrong"), type="negative")

    # ── Auth ──────────────────────────────────────────────────

    async def register(self, name: str, phone: str, language: str) -> None:
        if not name or not phone:
            self._set_error("Name and phone number are required.")
            return
        try:
            user, _created = await self.store.register_user_async(name=name, phone=phone, language=language)
        except ChatStoreError as e:
            logger.error(f"[UI] Registration failed: {e}")
            self._set_error("Registration failed. Please try again.")
            return
        await self.sign_in(user)

    async def login(self, phone: str) -> None:
        if not phone:
            self._set_error("Phone number is required to log in.")
            return
        try:
            user = await self.store.get_user_async(phone)
        except ChatStoreError as e:
            logger.error(f"[UI] Login lookup failed: {e}")
            self._set_error("Failed to log in. Could not reach the server.")
            return
        if user is None:
            self._set_error("No user found with this phone number. Please register first.")
            return
        await self.sign_in(user)

    async def sign_in(self, user: ChatUser) -> None:
        self.user = user
        self.error = ""
        await self.load_peers()
        self.relay.connect(self.connection)
        await self.relay.sign_in(self.connection, user)
        self.content.refresh()

    async def load_peers(self) -> None:
        assistant = ChatUser(name=AI_ASSISTANT_NAME, phone="AI", uid=AI_ASSISTANT_ID)
        users = await self.store.list_users_async()
        self.peers = [assistant] + [u for u in users if u.uid != self.user.uid]

    def _set_error(self, error: str) -> None:
        self.error = error
        self.content.refresh()

    # ── Chat actions ──────────────────────────────────────────

    async def select_peer(self, peer: ChatUser) -> None:
        self.active_peer = peer
        room = chat_id(self.user.uid, peer.uid)
        try:
            self.messages = await self.store.get_messages_async(room)
        except ChatStoreError as e:
            logger.error(f"[UI] Failed to fetch messages: {e}")
            self.messages = []
        self.relay.join_chat(self.connection, room)
        self.chat_panel.refresh()

    async def send(self, text_input) -> None:
        text = (text_input.value or "").strip()
        if not text or not self.active_peer:
            return
        text_input.value = ""
        await self.relay.send_message(
            self.connection, sender_id=self.user.uid, receiver_id=self.active_peer.uid, text=text,
        )

    async def summarize(self) -> None:
        if self.active_peer and self.messages:
            await self.relay.summarize_chat(
                self.connection, sender_id=self.user.uid, receiver_id=self.active_peer.uid,
            )

    def _show_summary(self, summary: str) -> None:
        with self.client:
            with ui.dialog() as dialog, ui.card().classes("w-96"):
                ui.label("Chat summary").classes("text-lg font-bold")
                ui.markdown(summary)
                ui.button("Close", on_click=dialog.close)
            dialog.open()

    def is_online(self, peer: ChatUser) -> bool:
        return peer.uid == AI_ASSISTANT_ID or peer.uid in self.online

    # ── Rendering ─────────────────────────────────────────────

    def build(self) -> None:
        self.client = ui.context.client
        self.content()

    @ui.refreshable
    def content(self) -> None:
        if self.user is None:
            self._auth_form()
        else:
            with ui.row().classes("w-full h-[90vh] no-wrap gap-0"):
                with ui.column().classes("w-1/3 h-full border-r overflow-auto"):
                    ui.label(f"{self.user.name}'s chats").classes("text-lg font-bold p-2")
                    self.sidebar()
                with ui.column().classes("w-2/3 h-full"):
                    self.chat_panel()

    def _auth_form(self) -> None:
        with ui.card().classes("absolute-center w-96"):
            ui.label("Welcome to AI Chat").classes("text-2xl font-bold")
            if self.error:
                ui.label(self.error).classes("text-negative")
            name = ui.input("Full Name", placeholder="e.g., Jane Doe") if self.register_mode else None
            phone = ui.input("Phone Number", placeholder="e.g., 9876543210")
            if self.register_mode:
                language = ui.select(LANGUAGES, value="en", label="Preferred Language").classes("w-full")
                ui.button("Register", on_click=lambda: self.register(
                    name.value.strip(), phone.value.strip(), language.value,
                )).classes("w-full")
            else:
                ui.button("Log In", on_click=lambda: self.login(phone.value.strip())).classes("w-full")
            ui.button(
                "Already have an account? Log In" if self.register_mode else "Don't have an account? Register",
                on_click=self._toggle_mode,
            ).props("flat")

    def _toggle_mode(self) -> None:
        self.register_mode = not self.register_mode
        self.error = ""
        self.content.refresh()

    @ui.refreshable
    def sidebar(self) -> None:
        for peer in self.peers:
            online = self.is_online(peer)
            with ui.item(on_click=lambda p=peer: self.select_peer(p)).classes("w-full"):
                with ui.item_section().props("avatar"):
                    with ui.avatar(color="primary" if online else "grey"):
                        ui.label(peer.name[:1].upper() or "?")
                with ui.item_section():
                    ui.item_label(peer.name or peer.uid)
                    ui.item_label("Online" if online else "Offline").props("caption")

    @ui.refreshable
    def chat_panel(self) -> None:
        if self.active_peer is None:
            ui.label("Choose a user from the list on the left.").classes("m-auto text-grey")
            return
        with ui.row().classes("w-full items-center p-2 border-b"):
            ui.label(self.active_peer.name or self.active_peer.uid).classes("text-lg font-bold")
            ui.space()
            if self.active_peer.uid != AI_ASSISTANT_ID:
                ui.button("Summarize Chat", on_click=self.summarize).props("outline")
        with ui.scroll_area().classes("w-full grow"):
            self.message_list()
        with ui.row().classes("w-full no-wrap p-2"):
            text = ui.input(placeholder="Type a message...").classes("grow")
            text.on("keydown.enter", lambda: self.send(text))
            ui.button(icon="send", on_click=lambda: self.send(text))

    @ui.refreshable
    def message_list(self) -> None:
        for msg in self.messages:
            sent = msg.sender_id == self.user.uid
            ui.chat_message(
                text=msg.text,
                name=None if sent else (self.active_peer.name or msg.sender_id),
                stamp=msg.timestamp.strftime("%H:%M"),
                sent=sent,
            ).classes("w-full")

    async def close(self) -> None:
        if self.user is not None:
            await self.relay.disconnect(self.connection)


class ChatPage:
    """Builder for the duet-chat page inside NiceGUI."""

    def __init__(self, services, path: str = "/") -> None:
        self._services = services
        self._path = path

    async def render(self) -> None:
        """Build the page for the current client and clean up on disconnect."""
        view = ChatView(self._services)
        view.build()

        async def _cleanup():
            logger.info(f"[UI] Client {view.connection.connection_id} disconnected")
            await view.close()

        ui.context.client.on_disconnect(_cleanup)

    def attach(self, fastapi_app, *, storage_secret: str) -> None:
        """Register the page and mount NiceGUI on ``fastapi_app``."""

        @ui.page(self._path, title="duet-chat")
        async def chat_route():
            await self.render()

        ui.run_with(fastapi_app, storage_secret=storage_secret, title="duet-chat")
