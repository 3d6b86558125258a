"""In-memory presence directory.

Tracks which users are signed in on which relay connection. Nothing here is
persisted; the directory is rebuilt from sign-in and disconnect events.
"""
import logging
from typing import Dict, List, Optional

from .chat_models import ChatUser, OnlineUser

logger = logging.getLogger(__name__)


class PresenceDirectory:
    """Maps user id → OnlineUser."""

    def __init__(self):
        self._online: Dict[str, OnlineUser] = {}

    def sign_in(self, user: ChatUser, connection_id: str) -> OnlineUser:
        """Mark a user online on a connection, replacing any older entry.

        A connection holds at most one user: signing in as someone else
        takes the previous user of that connection offline.
        """
        entry = OnlineUser(**user.model_dump(), connection_id=connection_id)
        for uid, other in list(self._online.items()):
            if other.connection_id == connection_id and uid != user.uid:
                del self._online[uid]
                logger.info(f"[PRESENCE] {uid} replaced by {user.uid} on {connection_id}")
        previous = self._online.get(user.uid)
        if previous and previous.connection_id != connection_id:
            logger.info(f"[PRESENCE] {user.uid} moved from {previous.connection_id} to {connection_id}")
        self._online[user.uid] = entry
        logger.info(f"[PRESENCE] {user.uid} online ({len(self._online)} users online)")
        return entry

    def sign_out(self, connection_id: str) -> Optional[OnlineUser]:
        """Remove the user signed in on ``connection_id``.

        Only the entry owned by that connection is removed, so a late
        disconnect of an old connection keeps a newer sign-in online.
        """
        for uid, entry in list(self._online.items()):
            if entry.connection_id == connection_id:
                del self._online[uid]
                logger.info(f"[PRESENCE] {uid} offline ({len(self._online)} users online)")
                return entry
        return None

    def get(self, uid: str) -> Optional[OnlineUser]:
        return self._online.get(uid)

    def is_online(self, uid: str) -> bool:
        return uid in self._online

    def online_users(self) -> List[OnlineUser]:
        return list(self._online.values())

    @property
    def online_count(self) -> int:
        return len(self._online)
