"""
Native Google Gemini client using google-genai SDK.
"""
from __future__ import annotations

import logging
from typing import List, Union, Optional, Tuple

from google import genai
from google.genai import types

from duet_chat.llm_base_client import LlmClient
from duet_chat.messages import LlmAIMessage, LlmHumanMessage, LlmSystemMessage

logger = logging.getLogger(__name__)


def _build_contents(
    messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
) -> Tuple[Optional[str], List[types.Content]]:
    """Convert internal messages to google-genai Content format.

    Returns:
        Tuple of (system_instruction, list of Content objects)
    """
    system_instruction = None
    contents: List[types.Content] = []

    for m in messages:
        if isinstance(m, LlmSystemMessage):
            system_instruction = m.content
        elif isinstance(m, LlmHumanMessage):
            contents.append(types.Content(
                role="user",
                parts=[types.Part.from_text(text=m.content)],
            ))
        elif isinstance(m, LlmAIMessage):
            contents.append(types.Content(
                role="model",
                parts=[types.Part.from_text(text=m.content)],
            ))

    return system_instruction, contents


def _extract_text(response) -> str:
    if not response.candidates or not response.candidates[0].content:
        return ""
    parts = response.candidates[0].content.parts or []
    return "".join(part.text for part in parts if getattr(part, "text", None))


def _usage_metadata(response) -> dict:
    if getattr(response, "usage_metadata", None):
        return {
            "input_tokens": getattr(response.usage_metadata, "prompt_token_count", 0),
            "output_tokens": getattr(response.usage_metadata, "candidates_token_count", 0),
        }
    return {}


class GoogleClient(LlmClient):
    """Native Google Gemini client using google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> None:
        super().__init__(model, temperature, max_tokens)
        self._client = genai.Client(api_key=api_key)

    def _build_config(self, system_instruction: Optional[str]) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            system_instruction=system_instruction,
        )

    # ── synchronous invoke ──────────────────────────────────────────────── #

    def invoke(
        self,
        messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
    ) -> LlmAIMessage:
        system_instruction, contents = _build_contents(messages)
        response = self._client.models.generate_content(
            model=self.model,
            contents=contents,
            config=self._build_config(system_instruction),
        )
        return LlmAIMessage(content=_extract_text(response), response_metadata=_usage_metadata(response))

    # ── async invoke ────────────────────────────────────────────────────── #

    async def ainvoke(
        self,
        messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
    ) -> LlmAIMessage:
        system_instruction, contents = _build_contents(messages)
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=self._build_config(system_instruction),
        )
        logger.debug(f"[GOOGLE] {self.model} answered with {len(response.candidates or [])} candidates")
        return LlmAIMessage(content=_extract_text(response), response_metadata=_usage_metadata(response))
