"""Discovery of the LLM providers that have credentials configured."""
import logging
from typing import Dict, List, Mapping, Optional, Set

from .llm_base_client import LlmClient
from .providers import (
    LLMInfo,
    get_provider,
    BaseProvider,
)

logger = logging.getLogger(__name__)


class LLMManager:
    """Knows which providers can be used and creates clients for them."""

    SUPPORTED_PROVIDERS = {
        "google",
        "openai",
    }

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        """
        :param env: Mapping to read API keys from, ``os.environ`` by default
        """
        self.providers: Dict[str, BaseProvider] = {}
        for provider_name in sorted(self.SUPPORTED_PROVIDERS):
            provider = get_provider(provider_name)(env=env)
            # only providers with an API key are usable
            if provider.is_available:
                self.providers[provider_name] = provider
            else:
                logger.debug(f"[LLM] Provider {provider_name} skipped, no API key")

    def get_available_llms(self) -> List[LLMInfo]:
        """All models of the providers that have an API key."""
        return [info for provider in self.providers.values() for info in provider.get_models()]

    def get_providers_for_model(self, model: str) -> Set[str]:
        """Get all providers that can serve a model.

        :param model: Short name or API name, optionally prefixed as "provider:model"
        :raises ValueError: If model is not found
        """
        if ":" in model:
            provider_name, model_name = model.split(":", 1)
            provider = self.providers.get(provider_name)
            if provider is not None and provider.find_model(model_name) is not None:
                return {provider_name}
            raise ValueError(f"Model {model} not found")
        providers = {name for name, provider in self.providers.items() if provider.find_model(model)}
        if not providers:
            raise ValueError(f"Model {model} not found")
        return providers

    def get_provider_for_model(self, model: str) -> str:
        """First provider, by name, able to serve ``model``.

        :raises ValueError: If model is not found
        """
        return sorted(self.get_providers_for_model(model))[0]

    def get_model_info(self, model: str) -> LLMInfo:
        """
        :raises ValueError: If model is not found
        """
        provider = self.providers[self.get_provider_for_model(model)]
        return provider.find_model(model.split(":", 1)[-1])

    def create_client(
        self,
        provider: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LlmClient:
        """Create a client for a provider.

        :param provider: Provider name, e.g. "google"
        :param model: Model name; the provider's smallest model when omitted
        :raises ValueError: If the provider has no credentials or the model is unknown
        """
        if provider not in self.providers:
            raise ValueError(f"Provider {provider} is not available (missing API key?)")
        instance = self.providers[provider]
        model = instance.default_model if model is None else self.get_model_info(f"{provider}:{model}").model
        logger.info(f"[LLM] Using {provider}:{model} for the assistant")
        return instance.create_client(model=model, temperature=temperature, max_tokens=max_tokens)
