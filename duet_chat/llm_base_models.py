"""Models for LLM conversation handling."""
from enum import Enum


class Role(str, Enum):
    """Role of a turn in an LLM conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
