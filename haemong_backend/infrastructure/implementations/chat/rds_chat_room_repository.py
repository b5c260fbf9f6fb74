"""SQLAlchemy implementation of ChatRoomRepository."""
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.chat.entities.bot_settings import BotSettings
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.repo import ChatRoomRepository


class RDSChatRoomRepository(ChatRoomRepository):

    async def find_by_user_and_date(
        self,
        user_id: UUID,
        day: date,
        session: AsyncSession,
        include_inactive: bool = False,
    ) -> Optional[ChatRoom]:
        stmt = select(ChatRoom).where(ChatRoom.user_id == user_id, ChatRoom.date == day)
        if not include_inactive:
            stmt = stmt.where(ChatRoom.is_active.is_(True))
        result = await session.execute(stmt)
        return result.scalars().first()

    async def create(self, room: ChatRoom, session: AsyncSession) -> ChatRoom:
        session.add(room)
        try:
            await session.commit()
        except Exception:
            # leave the session usable for the caller's follow-up lookups
            await session.rollback()
            raise
        return await self.get_by_id(room.id, session)

    async def get_by_id(self, room_id: UUID, session: AsyncSession) -> Optional[ChatRoom]:
        result = await session.execute(select(ChatRoom).where(ChatRoom.id == room_id))
        return result.scalars().first()

    async def list_by_user(self, user_id: UUID, limit: int, session: AsyncSession) -> List[ChatRoom]:
        stmt = (
            select(ChatRoom)
            .where(ChatRoom.user_id == user_id, ChatRoom.is_active.is_(True))
            .order_by(ChatRoom.date.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def update_title(self, room_id: UUID, title: str, session: AsyncSession) -> Optional[ChatRoom]:
        await session.execute(update(ChatRoom).where(ChatRoom.id == room_id).values(title=title))
        await session.commit()
        return await self.get_by_id(room_id, session)

    async def update_bot_settings(self, room_id: UUID, bot_settings_id: int, session: AsyncSession) -> Optional[ChatRoom]:
        stmt = update(ChatRoom).where(ChatRoom.id == room_id).values(bot_settings_id=bot_settings_id)
        await session.execute(stmt)
        await session.commit()
        # joined relationship is stale after a bulk update
        session.expire_all()
        return await self.get_by_id(room_id, session)

    async def set_active(self, room_id: UUID, active: bool, session: AsyncSession) -> None:
        await session.execute(update(ChatRoom).where(ChatRoom.id == room_id).values(is_active=active))
        await session.commit()

    async def find_bot_settings(self, gender: str, style: str, session: AsyncSession) -> Optional[BotSettings]:
        stmt = select(BotSettings).where(BotSettings.gender == gender, BotSettings.style == style)
        result = await session.execute(stmt)
        return result.scalars().first()
