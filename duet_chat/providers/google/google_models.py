"""Google model configurations."""
from ..llm_provider_models import LLMInfo, ModelSize


GOOGLE_MODELS = [
    LLMInfo(
        provider="google",
        name="gemini_flash",
        label="Gemini 2.5 Flash",
        model="gemini-2.5-flash",
        description="Fast and efficient version optimized for quick responses.",
        size=ModelSize.SMALL,
        max_input_tokens=1000000,
        max_output_tokens=8192,
    ),
    LLMInfo(
        provider="google",
        name="gemini_pro",
        label="Gemini 2.5 Pro",
        model="gemini-2.5-pro",
        description="Google's most powerful Gemini model with adaptive thinking.",
        size=ModelSize.LARGE,
        max_input_tokens=1000000,
        max_output_tokens=8192,
    ),
]
