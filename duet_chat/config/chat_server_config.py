import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


class ConfigError(ValueError):
    """Raised when the server environment is incomplete or inconsistent."""


class StoreBackend(str, Enum):
    MONGODB = "mongodb"
    MEMORY = "memory"


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")


@dataclass
class ChatServerConfig:
    """Defines the runtime configuration of the chat server."""

    store_backend: StoreBackend = StoreBackend.MEMORY
    """Where users and messages are persisted."""
    mongo_uri: str = ""
    """MongoDB connection string, required for the mongodb backend."""
    mongo_db: str = "duet_chat"
    """MongoDB database holding the ``users`` and ``messages`` collections."""
    llm_provider: str = "google"
    """Provider answering messages sent to the AI assistant."""
    assistant_model: Optional[str] = None
    """Model name; the provider's default model when None."""
    ai_history_limit: int = 10
    """Number of most recent messages sent to the LLM as context."""
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    """Origins allowed to call the HTTP API from a browser."""
    port: int = 5000
    https: bool = False
    ssl_certfile: Optional[str] = None
    ssl_keyfile: Optional[str] = None
    enable_ui: bool = True
    """Mount the NiceGUI chat page at ``/``."""
    ui_storage_secret: str = "duet-chat"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ChatServerConfig":
        """Build the configuration from environment variables.

        :param env: Mapping to read from, ``os.environ`` by default
        :raises ConfigError: If a required variable is missing or malformed
        """
        env = os.environ if env is None else env

        mongo_uri = env.get("MONGO_URI", "")
        backend_name = env.get("CHAT_STORE") or (StoreBackend.MONGODB.value if mongo_uri else "")
        if not backend_name:
            raise ConfigError("MONGO_URI is not defined (set CHAT_STORE=memory for a non-persistent store)")
        try:
            backend = StoreBackend(backend_name.lower())
        except ValueError:
            raise ConfigError(f"Unknown CHAT_STORE {backend_name!r}")
        if backend == StoreBackend.MONGODB and not mongo_uri:
            raise ConfigError("MONGO_URI is not defined")

        origins = [o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()]
        limit = _int(env, "AI_HISTORY_LIMIT", 10)
        if limit < 1:
            raise ConfigError("AI_HISTORY_LIMIT must be at least 1")

        return cls(
            store_backend=backend,
            mongo_uri=mongo_uri,
            mongo_db=env.get("MONGO_DB") or "duet_chat",
            llm_provider=(env.get("LLM_PROVIDER") or "google").lower(),
            assistant_model=env.get("ASSISTANT_MODEL") or None,
            ai_history_limit=limit,
            cors_origins=origins or ["*"],
            port=_int(env, "PORT", 5000),
            https=_flag(env.get("HTTPS"), False),
            ssl_certfile=env.get("SSL_CERTFILE") or None,
            ssl_keyfile=env.get("SSL_KEYFILE") or None,
            enable_ui=_flag(env.get("CHAT_UI"), True),
            ui_storage_secret=env.get("UI_STORAGE_SECRET") or "duet-chat",
        )
