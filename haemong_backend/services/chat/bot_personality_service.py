from __future__ import annotations

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.chat.entities.bot_settings import BotPersonality
from haemong_backend.domain.chat.repo import BotPersonalityRepository
from haemong_backend.domain.errors import NotFoundError

DEFAULT_PERSONALITY_ID = 2


class BotPersonalityService:
    """Read access to the persona catalogue."""

    def __init__(self, repo: BotPersonalityRepository):
        self._repo = repo

    async def find_all(self, session: AsyncSession) -> List[BotPersonality]:
        return await self._repo.list_active(session)

    async def find_by_id(self, personality_id: int, session: AsyncSession) -> BotPersonality:
        personality = await self._repo.get_by_id(personality_id, session)
        if personality is None:
            raise NotFoundError(f"Bot personality {personality_id} not found")
        return personality

    async def find_by_name(self, name: str, session: AsyncSession) -> BotPersonality:
        personality = await self._repo.get_by_name(name, session)
        if personality is None:
            raise NotFoundError(f"Bot personality '{name}' not found")
        return personality

    async def get_default(self, session: AsyncSession) -> BotPersonality:
        personality = await self._repo.get_by_id(DEFAULT_PERSONALITY_ID, session)
        if personality is not None:
            return personality
        active = await self._repo.list_active(session)
        if not active:
            raise NotFoundError("No active bot personality configured")
        return active[0]
