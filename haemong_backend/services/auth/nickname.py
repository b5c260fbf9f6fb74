"""Random nickname generation and availability checks."""
from __future__ import annotations

import logging
import random
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.user.repo import UserRepository

logger = logging.getLogger(__name__)

NICKNAME_WORDS = (
    "꿈꾸는", "빛나는", "신비한", "환상의", "마법의", "황금의", "은빛의", "별빛의",
    "달빛의", "바람의", "구름의", "하늘의", "바다의", "숲속의", "산속의", "꽃의",
    "나비", "새벽", "석양", "무지개", "별똥별", "꽃잎", "이슬", "진주",
)
MAX_ATTEMPTS = 50


class NicknameGenerationError(RuntimeError):
    pass


class NicknameService:
    def __init__(self, user_repo: UserRepository, rng: Optional[random.Random] = None):
        self._user_repo = user_repo
        self._rng = rng or random.Random()

    def generate_random_nickname(self) -> str:
        return f"{self._rng.choice(NICKNAME_WORDS)}{self._rng.randint(1000, 9999)}"

    async def check_nickname_availability(self, nickname: str, session: AsyncSession) -> bool:
        """True exactly when no user holds *nickname*.

        A missing row is the only "available" signal; query failures propagate
        instead of being read as availability.
        """
        return await self._user_repo.get_by_nickname(nickname, session) is None

    async def generate_unique_nickname(self, session: AsyncSession) -> str:
        for _ in range(MAX_ATTEMPTS):
            nickname = self.generate_random_nickname()
            if await self.check_nickname_availability(nickname, session):
                return nickname
        logger.error(f"No free nickname after {MAX_ATTEMPTS} attempts")
        raise NicknameGenerationError("Unable to generate unique nickname after maximum attempts")
