"""LLM-backed dream interpretation."""
from __future__ import annotations

import logging
from typing import Sequence, Tuple

from haemong_backend.context.chat import ChatContextBuilder, ChatPrompts
from haemong_backend.domain.chat.entities.bot_settings import DEFAULT_BOT_GENDER, DEFAULT_BOT_STYLE
from haemong_backend.domain.chat.entities.message import Message
from haemong_backend.domain.ports.llm import LLMService

logger = logging.getLogger(__name__)


class AiService:
    def __init__(self, llm: LLMService, context_builder: ChatContextBuilder):
        self._llm = llm
        self._context = context_builder

    async def generate_dream_interpretation(
        self,
        dream_content: str,
        gender: str,
        style: str,
        history: Sequence[Message] = (),
    ) -> str:
        """Persona reply to *dream_content*; never raises, degrades to an apology."""
        messages = self._context.prepare_llm_messages(dream_content, gender, style, history)
        try:
            reply = await self._llm.generate_response(messages, max_tokens=1000, temperature=0.7)
        except Exception as e:
            logger.error(f"Dream interpretation failed: {e}")
            return ChatPrompts.SERVICE_UNAVAILABLE
        return reply or ChatPrompts.INTERPRETATION_FALLBACK

    async def summarize_interpretation(self, interpretation: str) -> str:
        """Short, visual summary for image prompts; falls back to the input."""
        try:
            summary = await self._llm.generate_response(
                self._context.prepare_summary_messages(interpretation),
                max_tokens=150,
                temperature=0.3,
            )
        except Exception as e:
            logger.error(f"Interpretation summarization failed: {e}")
            return interpretation
        return summary or interpretation

    async def generate_short_interpretation(self, dream_content: str, gender: str, style: str) -> str:
        try:
            return await self._llm.generate_response(
                self._context.prepare_video_interpretation_messages(dream_content, gender, style),
                max_tokens=300,
                temperature=0.7,
            )
        except Exception as e:
            logger.error(f"Short interpretation failed: {e}")
            return ""

    def generate_welcome_message(self, gender: str, style: str) -> str:
        return ChatPrompts.welcome_message(gender, style)

    @staticmethod
    def default_bot_settings() -> Tuple[str, str]:
        return DEFAULT_BOT_GENDER.value, DEFAULT_BOT_STYLE.value
