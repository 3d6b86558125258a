"""Message types exchanged with LLM clients."""
from typing import Any, Dict

from pydantic import BaseModel, Field

from .llm_base_models import Role


class LlmMessage(BaseModel):
    """Base class for messages sent to or received from an LLM."""
    content: str
    role: Role


class LlmSystemMessage(LlmMessage):
    role: Role = Role.SYSTEM


class LlmHumanMessage(LlmMessage):
    role: Role = Role.USER


class LlmAIMessage(LlmMessage):
    role: Role = Role.ASSISTANT
    response_metadata: Dict[str, Any] = Field(default_factory=dict)
