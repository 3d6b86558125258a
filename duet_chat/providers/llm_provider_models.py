"""Common models for LLM providers."""
from dataclasses import dataclass
from enum import IntEnum


class ModelSize(IntEnum):
    """Size categories for LLM models."""
    VERY_SMALL = 1
    SMALL = 2
    MEDIUM = 3
    LARGE = 4
    VERY_LARGE = 5


@dataclass
class LLMInfo:
    """Information about an LLM model."""
    provider: str  # Provider name
    name: str  # High-level name for identification
    label: str  # Human-readable label
    model: str  # Actual model name for the API
    description: str
    size: ModelSize = ModelSize.MEDIUM  # Model size category
    max_input_tokens: int = 64000  # Maximum number of input tokens
    max_output_tokens: int = 4096  # Maximum number of output tokens
    supports_system_prompt: bool = True  # Whether the model supports system prompts
