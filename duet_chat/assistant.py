"""Answers messages addressed to the AI assistant peer.

The assistant reads the most recent messages of the user's chat with
``ai_assistant`` from the store, sends them to an LLM client and stores the
reply as a message from ``ai_assistant``.
"""
import logging
from typing import List, Union

from .chat_models import AI_ASSISTANT_ID, ChatMessageRecord, chat_id
from .llm_base_client import LlmClient
from .messages import LlmAIMessage, LlmHumanMessage, LlmSystemMessage
from .store import ChatStore

logger = logging.getLogger(__name__)

NO_PROMPT_REPLY = "I'm not sure how to respond to that. Please ask a question."
ERROR_REPLY = "I'm sorry, an unexpected error occurred."
EMPTY_SUMMARY = "There is nothing to summarize yet."

SUMMARY_INSTRUCTION = (
    "You summarize chat conversations between two people. "
    "Write a short neutral summary of the main topics, decisions and open questions. "
    "Refer to the participants by name."
)

LlmTurn = Union[LlmHumanMessage, LlmAIMessage]


def build_turns(history: List[ChatMessageRecord]) -> List[LlmTurn]:
    """Map stored messages to LLM turns.

    Messages sent by the assistant become model turns, all others user turns.
    Leading model turns are dropped since a conversation has to start with
    the user.
    """
    turns: List[LlmTurn] = []
    for msg in history:
        if msg.sender_id == AI_ASSISTANT_ID:
            if turns:
                turns.append(LlmAIMessage(content=msg.text))
        else:
            turns.append(LlmHumanMessage(content=msg.text))
    return turns


class AssistantResponder:
    """Produces and stores AI replies for a user's assistant chat."""

    def __init__(self, *, store: ChatStore, client: LlmClient, history_limit: int = 10,
                 system_prompt: str | None = None):
        self.store = store
        self.client = client
        self.history_limit = history_limit
        self.system_prompt = system_prompt

    async def generate_reply(self, turns: List[LlmTurn]) -> str:
        """Ask the LLM to continue ``turns``.

        Never raises: a missing user prompt or a failing API call yield a
        fixed fallback text.
        """
        if not turns or not isinstance(turns[-1], LlmHumanMessage):
            return NO_PROMPT_REPLY
        messages: list = []
        if self.system_prompt:
            messages.append(LlmSystemMessage(content=self.system_prompt))
        messages.extend(turns)
        try:
            response = await self.client.ainvoke(messages)
        except Exception as e:
            logger.error(f"[ASSISTANT] LLM call failed: {type(e).__name__}: {e}")
            return ERROR_REPLY
        text = response.content.strip()
        if not text:
            logger.warning(f"[ASSISTANT] {self.client.model} returned an empty answer")
            return ERROR_REPLY
        return text

    async def reply(self, user_id: str) -> ChatMessageRecord:
        """Answer the latest messages of ``user_id``'s assistant chat and store the answer."""
        conversation = chat_id(user_id, AI_ASSISTANT_ID)
        history = await self.store.get_recent_messages_async(conversation, self.history_limit)
        logger.debug(f"[ASSISTANT] Replying in {conversation} with {len(history)} messages of context")
        text = await self.generate_reply(build_turns(history))
        return await self.store.add_message_async(
            chat_id=conversation,
            sender_id=AI_ASSISTANT_ID,
            receiver_id=user_id,
            text=text,
        )

    async def ask(self, user_id: str, prompt: str) -> ChatMessageRecord:
        """Store ``prompt`` as the user's message to the assistant and answer it."""
        await self.store.add_message_async(
            chat_id=chat_id(user_id, AI_ASSISTANT_ID),
            sender_id=user_id,
            receiver_id=AI_ASSISTANT_ID,
            text=prompt,
        )
        return await self.reply(user_id)

    async def summarize(self, user_a: str, user_b: str) -> str:
        """Summarize the chat between two users. The summary is not stored."""
        history = await self.store.get_messages_async(chat_id(user_a, user_b))
        if not history:
            return EMPTY_SUMMARY
        names = {}
        for uid in {user_a, user_b}:
            user = await self.store.get_user_async(uid)
            names[uid] = user.name if user and user.name else uid
        transcript = "\n".join(f"{names.get(m.sender_id, m.sender_id)}: {m.text}" for m in history)
        messages = [
            LlmSystemMessage(content=SUMMARY_INSTRUCTION),
            LlmHumanMessage(content=transcript),
        ]
        try:
            response = await self.client.ainvoke(messages)
        except Exception as e:
            logger.error(f"[ASSISTANT] Summary failed: {type(e).__name__}: {e}")
            return ERROR_REPLY
        return response.content.strip() or ERROR_REPLY
