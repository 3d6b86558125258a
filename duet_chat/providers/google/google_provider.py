"""Google Gemini provider."""
from typing import List, Optional

from duet_chat.providers import BaseProvider, register_provider
from duet_chat.llm_base_client import LlmClient
from .google_models import GOOGLE_MODELS, LLMInfo
from .google_client import GoogleClient


@register_provider("google")
class GoogleProvider(BaseProvider):
    """Gemini models through the google-genai SDK."""

    api_key_vars = ("GEMINI_API_KEY", "GEMINI_KEY")

    def __init__(self, env=None):
        super().__init__("google", "Google", env)

    def get_models(self) -> List[LLMInfo]:
        return GOOGLE_MODELS

    def create_client(self, model: str, temperature: float = 0.7, max_tokens: Optional[int] = None) -> LlmClient:
        return GoogleClient(
            api_key=self.require_key(),
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
