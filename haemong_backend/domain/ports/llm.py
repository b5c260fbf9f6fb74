from abc import ABC, abstractmethod
from typing import Dict, List


class LLMService(ABC):
    """Chat-completion port."""

    @abstractmethod
    async def generate_response(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str: ...
