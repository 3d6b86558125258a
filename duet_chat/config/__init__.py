from .chat_server_config import ChatServerConfig, ConfigError, StoreBackend

__all__ = ["ChatServerConfig", "ConfigError", "StoreBackend"]
