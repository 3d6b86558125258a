"""OpenAI provider package."""
from .openai_models import OPENAI_MODELS

# Note: Provider is imported directly to avoid circular imports
__all__ = ['OPENAI_MODELS']
