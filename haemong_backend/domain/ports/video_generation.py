"""Port for text-to-video providers (the last one may return a still image)."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class VideoResult:
    url: Optional[str]
    model: str
    is_static_image: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None and self.error is None


class VideoProvider(ABC):
    name: str

    @abstractmethod
    async def generate(self, prompt: str) -> VideoResult: ...
