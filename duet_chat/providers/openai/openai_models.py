"""OpenAI model configurations."""
from ..llm_provider_models import LLMInfo, ModelSize


OPENAI_MODELS = [
    LLMInfo(
        provider="openai",
        name="gpt-4.1-mini",
        label="GPT-4.1 Mini",
        model="gpt-4.1-mini",
        description="Fast and affordable model for everyday chat.",
        size=ModelSize.SMALL,
        max_input_tokens=1000000,
        max_output_tokens=32768,
    ),
    LLMInfo(
        provider="openai",
        name="gpt-4.1",
        label="GPT-4.1",
        model="gpt-4.1",
        description="Flagship model for complex conversations.",
        size=ModelSize.LARGE,
        max_input_tokens=1000000,
        max_output_tokens=32768,
    ),
]
