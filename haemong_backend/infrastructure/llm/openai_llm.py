"""OpenAI chat-completion adapter."""
from __future__ import annotations

import logging
import time
from typing import Dict, List

from openai import AsyncOpenAI

from haemong_backend.domain.ports.llm import LLMService

logger = logging.getLogger(__name__)


class OpenAILLM(LLMService):
    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo"):
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate_response(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        start = time.time()
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        content = response.choices[0].message.content or ""
        logger.info(f"LLM completion ({self._model}) took {time.time() - start:.2f}s, {len(content)} chars")
        return content
