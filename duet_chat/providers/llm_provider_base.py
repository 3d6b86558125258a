"""Base provider interface for the LLM vendors that can answer as the assistant."""
import os
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional, Tuple

from .llm_provider_models import LLMInfo
from ..llm_base_client import LlmClient


class BaseProvider(ABC):
    """An LLM vendor, its models and the credentials needed to call it.

    Subclasses list the environment variables that may hold their API key in
    ``api_key_vars``; the first one that is set is used.
    """

    api_key_vars: Tuple[str, ...] = ()

    def __init__(self, name: str, label: str, env: Optional[Mapping[str, str]] = None):
        """
        :param name: The provider name, "google" or "openai"
        :param label: The provider label shown to humans
        :param env: Mapping to read credentials from, ``os.environ`` by default
        """
        self.name = name
        self.label = label
        env = os.environ if env is None else env
        self.api_key: Optional[str] = next((env[var] for var in self.api_key_vars if env.get(var)), None)

    @property
    def is_available(self) -> bool:
        """True if an API key was found."""
        return bool(self.api_key)

    def require_key(self) -> str:
        """:raises ValueError: If none of ``api_key_vars`` is set"""
        if not self.api_key:
            raise ValueError(f"{' or '.join(self.api_key_vars)} environment variable is not set")
        return self.api_key

    @abstractmethod
    def get_models(self) -> List[LLMInfo]:
        """Models this provider serves."""

    def find_model(self, model: str) -> Optional[LLMInfo]:
        """Look a model up by its short name or its API name."""
        for info in self.get_models():
            if model in (info.name, info.model):
                return info
        return None

    @property
    def default_model(self) -> str:
        """API name of the smallest model, used when none is configured."""
        return min(self.get_models(), key=lambda m: m.size).model

    @abstractmethod
    def create_client(
        self,
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LlmClient:
        """Create a client talking to ``model``.

        :raises ValueError: If the provider has no API key
        """
