"""Server integration helpers.

Host apps call these to build the chat services and register the HTTP and
WebSocket routes on a FastAPI app.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from duet_chat.config import ChatServerConfig, StoreBackend

logger = logging.getLogger(__name__)

# Route constants
WS_PATH = "/ws"
HEALTH_PATH = "/healthz"


@dataclass
class ChatServices:
    """Runtime objects shared by all requests, kept on ``app.state.services``."""
    config: ChatServerConfig
    store: "ChatStore"
    relay: "ChatRelay"
    assistant: Optional["AssistantResponder"] = None

    def close(self) -> None:
        self.store.close()


def build_store(config: ChatServerConfig) -> "ChatStore":
    """Create the chat store selected by the configuration."""
    from duet_chat.store import MemoryChatStore

    if config.store_backend == StoreBackend.MONGODB:
        from duet_chat.store import MongoDBChatStore
        store = MongoDBChatStore(mongo_uri=config.mongo_uri, mongo_db=config.mongo_db)
        store.ensure_indexes()
        logger.info(f"[SERVER] MongoDB store on database '{config.mongo_db}'")
        return store
    logger.warning("[SERVER] Using the in-memory store, data is lost on restart")
    return MemoryChatStore()


def build_services(
    config: ChatServerConfig,
    *,
    store: Optional["ChatStore"] = None,
    llm_client: Optional["LlmClient"] = None,
) -> ChatServices:
    """Wire store, assistant and relay together.

    :param store: Store to use instead of the configured one
    :param llm_client: LLM client to use instead of creating one for ``config.llm_provider``
    :raises ValueError: If no client is given and the provider has no API key
    """
    from duet_chat.api import ChatRelay
    from duet_chat.assistant import AssistantResponder
    from duet_chat.llm_provider_manager import LLMManager

    if store is None:
        store = build_store(config)
    if llm_client is None:
        llm_client = LLMManager().create_client(config.llm_provider, model=config.assistant_model)
    assistant = AssistantResponder(store=store, client=llm_client, history_limit=config.ai_history_limit)
    relay = ChatRelay(store=store, assistant=assistant)
    return ChatServices(config=config, store=store, relay=relay, assistant=assistant)


def build_http_router():
    """Build the FastAPI APIRouter with the REST endpoints and the relay WebSocket."""
    from fastapi import APIRouter, HTTPException, Request, Response
    from pydantic import BaseModel, ConfigDict
    from pydantic.alias_generators import to_camel
    from starlette.websockets import WebSocket, WebSocketDisconnect

    from duet_chat.api import WebSocketConnection
    from duet_chat.chat_models import chat_id
    from duet_chat.store import ChatStoreError

    router = APIRouter()

    def _services(request: Request) -> ChatServices:
        return request.app.state.services

    # ---- Registration / users ----

    class RegisterPayload(BaseModel):
        name: str = ""
        phone: str = ""
        language: str = "en"

    @router.post("/register")
    async def register(payload: RegisterPayload, request: Request, response: Response):
        phone = payload.phone.strip()
        if not phone:
            raise HTTPException(400, "Phone number is required.")
        try:
            user, created = await _services(request).store.register_user_async(
                name=payload.name.strip(), phone=phone, language=payload.language or "en",
            )
        except ChatStoreError as e:
            logger.error(f"[API] Error during registration: {e}")
            raise HTTPException(500, "Server error during registration.")
        if not created:
            return {"message": "User already exists.", "user": user.to_wire()}
        response.status_code = 201
        logger.info(f"[API] Registered user {user.uid}")
        return {"message": "User registered successfully.", "user": user.to_wire()}

    @router.get("/users")
    async def list_users(request: Request):
        try:
            users = await _services(request).store.list_users_async()
        except ChatStoreError as e:
            logger.error(f"[API] Error fetching users: {e}")
            raise HTTPException(500, "Server error fetching users.")
        return [u.to_wire() for u in users]

    # ---- History ----

    @router.get("/messages/{user1_id}/{user2_id}")
    async def get_messages(user1_id: str, user2_id: str, request: Request):
        try:
            messages = await _services(request).store.get_messages_async(chat_id(user1_id, user2_id))
        except ChatStoreError as e:
            logger.error(f"[API] Error fetching messages: {e}")
            raise HTTPException(500, "Server error fetching messages.")
        return [m.to_wire() for m in messages]

    # ---- Ask AI ----

    class AskAiPayload(BaseModel):
        model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

        prompt: str = ""
        user_id: str = ""

    @router.post("/ask-ai")
    async def ask_ai(payload: AskAiPayload, request: Request):
        if not payload.prompt.strip() or not payload.user_id:
            raise HTTPException(400, "Prompt and userId are required.")
        assistant = _services(request).assistant
        if assistant is None:
            raise HTTPException(503, "The AI assistant is not configured.")
        try:
            reply = await assistant.ask(payload.user_id, payload.prompt)
        except ChatStoreError as e:
            logger.error(f"[API] Error in /ask-ai route: {e}")
            raise HTTPException(500, "Server error processing AI request.")
        return {"response": reply.text}

    # ---- Health ----

    @router.get(HEALTH_PATH)
    async def healthz(request: Request):
        services = _services(request)
        return {
            "status": "ok",
            "service": "duet-chat",
            "store": services.store.backend_name,
            "online_users": services.relay.presence.online_count,
            "assistant": services.assistant is not None,
        }

    # ---- WebSocket relay ----

    @router.websocket(WS_PATH)
    async def websocket_relay(ws: WebSocket):
        """WebSocket endpoint carrying the realtime chat events."""
        relay = ws.app.state.services.relay
        await ws.accept()
        conn = WebSocketConnection(ws)
        relay.connect(conn)
        try:
            while True:
                raw = await ws.receive_text()
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    await conn.send({"type": "error", "error_type": "InvalidJSON", "message": "Invalid JSON"})
                    continue
                if not isinstance(msg, dict):
                    await conn.send({"type": "error", "error_type": "InvalidMessage", "message": "Expected a JSON object"})
                    continue
                try:
                    await relay.handle_client_message(conn, msg)
                except Exception as e:
                    # one bad event must not end the session
                    logger.error(f"[WS] Error handling {msg.get('type')} on {conn.connection_id}: {type(e).__name__}: {e}")
                    await conn.send({"type": "error", "error_type": type(e).__name__, "message": "Event could not be processed"})

        except WebSocketDisconnect:
            logger.info(f"[WS] Client {conn.connection_id} disconnected")
        except Exception as e:
            logger.error(f"[WS] Error on connection {conn.connection_id}: {type(e).__name__}: {e}")
        finally:
            await relay.disconnect(conn)

    return router
