"""
OpenAI Chat Completions API client.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI, AsyncOpenAI

from duet_chat.llm_base_client import LlmClient
from duet_chat.messages import LlmAIMessage, LlmHumanMessage, LlmSystemMessage

logger = logging.getLogger(__name__)


def _convert_messages(
    messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
) -> List[Dict[str, Any]]:
    """Convert internal messages to OpenAI Chat Completions format."""
    return [{"role": m.role.value, "content": m.content} for m in messages]


class OpenAIChatClient(LlmClient):
    """Client for the OpenAI Chat Completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(model, temperature, max_tokens)
        self._client = OpenAI(api_key=api_key, base_url=base_url)
        self._aclient = AsyncOpenAI(api_key=api_key, base_url=base_url)

    def _build_kwargs(
        self,
        messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": _convert_messages(messages),
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            kwargs["max_tokens"] = self.max_tokens
        return kwargs

    @staticmethod
    def _to_message(response) -> LlmAIMessage:
        content = response.choices[0].message.content or ""
        metadata = {}
        if response.usage:
            metadata = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }
        return LlmAIMessage(content=content, response_metadata=metadata)

    # ── synchronous invoke ──────────────────────────────────────────────── #

    def invoke(
        self,
        messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
    ) -> LlmAIMessage:
        response = self._client.chat.completions.create(**self._build_kwargs(messages))
        return self._to_message(response)

    # ── async invoke ────────────────────────────────────────────────────── #

    async def ainvoke(
        self,
        messages: List[Union[LlmSystemMessage, LlmHumanMessage, LlmAIMessage]],
    ) -> LlmAIMessage:
        response = await self._aclient.chat.completions.create(**self._build_kwargs(messages))
        return self._to_message(response)
