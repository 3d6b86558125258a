"""OpenAI provider, also usable with OpenAI compatible endpoints via OPENAI_BASE_URL."""
import os
from typing import List, Optional

from duet_chat.providers import BaseProvider, register_provider
from duet_chat.llm_base_client import LlmClient
from .openai_models import OPENAI_MODELS, LLMInfo
from .openai_client import OpenAIChatClient


@register_provider("openai")
class OpenAIProvider(BaseProvider):
    """OpenAI chat models."""

    api_key_vars = ("OPENAI_API_KEY",)

    def __init__(self, env=None):
        super().__init__("openai", "OpenAI", env)
        self.base_url = (os.environ if env is None else env).get("OPENAI_BASE_URL") or None

    def get_models(self) -> List[LLMInfo]:
        return OPENAI_MODELS

    def create_client(self, model: str, temperature: float = 0.7, max_tokens: Optional[int] = None) -> LlmClient:
        return OpenAIChatClient(
            api_key=self.require_key(),
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            base_url=self.base_url,
        )
