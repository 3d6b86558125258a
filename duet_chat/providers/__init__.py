"""Registry of the LLM providers the assistant can run on.

Provider modules register themselves with :func:`register_provider` when
this package is imported.
"""
from typing import Dict, Type

from .llm_provider_base import BaseProvider
from .llm_provider_models import LLMInfo, ModelSize

PROVIDERS: Dict[str, Type[BaseProvider]] = {}


def register_provider(provider_name: str):
    """Class decorator adding a provider to :data:`PROVIDERS` under ``provider_name``."""
    def decorator(provider_class: Type[BaseProvider]):
        PROVIDERS[provider_name] = provider_class
        return provider_class
    return decorator


def get_provider(provider: str) -> Type[BaseProvider]:
    """:raises ValueError: If no provider is registered under that name"""
    try:
        return PROVIDERS[provider]
    except KeyError:
        raise ValueError(f"Provider {provider} not registered")


# Provider modules need register_provider, so they are imported last
from .google.google_provider import GoogleProvider  # noqa: E402
from .openai.openai_provider import OpenAIProvider  # noqa: E402

__all__ = [
    "BaseProvider",
    "LLMInfo",
    "ModelSize",
    "PROVIDERS",
    "register_provider",
    "get_provider",
    "GoogleProvider",
    "OpenAIProvider",
]
