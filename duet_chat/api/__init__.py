"""Realtime relay API.

Provides ChatRelay, RoomRegistry and the connection types the relay fans out to.
The WS endpoint itself lives in duet_chat.server.build_http_router().
"""

from .chat_relay_api import ChatRelay, RelayConnection, RoomRegistry, WebSocketConnection

__all__ = ["ChatRelay", "RelayConnection", "RoomRegistry", "WebSocketConnection"]
