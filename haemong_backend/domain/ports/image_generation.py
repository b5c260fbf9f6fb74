"""Port for text-to-image providers."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class ImageResult:
    """Outcome of one provider call.

    ``error`` is ``None`` on success, ``"content_policy_violation"`` when the
    provider refused the prompt, ``"error"`` otherwise.
    """
    url: Optional[str]
    model: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None and self.error is None


class ImageProvider(ABC):
    name: str

    @abstractmethod
    async def generate(self, prompt: str, size: str, style: str) -> ImageResult: ...
