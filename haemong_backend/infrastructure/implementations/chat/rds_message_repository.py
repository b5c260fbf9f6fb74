"""SQLAlchemy implementations of the message, media and personality ports."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.chat.entities.bot_settings import BotPersonality
from haemong_backend.domain.chat.entities.media import GeneratedImage, Video
from haemong_backend.domain.chat.entities.message import Message
from haemong_backend.domain.chat.repo import BotPersonalityRepository, MediaRepository, MessageRepository


class RDSMessageRepository(MessageRepository):

    async def create(self, message: Message, session: AsyncSession) -> Message:
        session.add(message)
        await session.commit()
        await session.refresh(message)
        return message

    async def list_by_room(self, room_id: UUID, limit: int, offset: int, session: AsyncSession) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.chat_room_id == room_id)
            .order_by(Message.created_at.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_recent(self, room_id: UUID, limit: int, session: AsyncSession) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.chat_room_id == room_id)
            .order_by(Message.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def count_by_room(self, room_id: UUID, session: AsyncSession) -> int:
        count = await session.scalar(select(func.count(Message.id)).where(Message.chat_room_id == room_id))
        return count or 0

    async def latest_of_type(self, room_id: UUID, message_type: str, session: AsyncSession) -> Optional[Message]:
        stmt = (
            select(Message)
            .where(Message.chat_room_id == room_id, Message.type == message_type)
            .order_by(Message.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def first_of_type(
        self,
        room_id: UUID,
        message_type: str,
        session: AsyncSession,
        after: Optional[Message] = None,
    ) -> Optional[Message]:
        stmt = select(Message).where(Message.chat_room_id == room_id, Message.type == message_type)
        if after is not None:
            stmt = stmt.where(Message.created_at > after.created_at)
        stmt = stmt.order_by(Message.created_at.asc()).limit(1)
        result = await session.execute(stmt)
        return result.scalars().first()


class RDSMediaRepository(MediaRepository):

    async def add_image(self, image: GeneratedImage, session: AsyncSession) -> GeneratedImage:
        session.add(image)
        await session.commit()
        return image

    async def latest_image_for_room(self, room_id: UUID, session: AsyncSession) -> Optional[GeneratedImage]:
        stmt = (
            select(GeneratedImage)
            .where(GeneratedImage.chat_room_id == room_id)
            .order_by(GeneratedImage.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def add_video(self, video: Video, session: AsyncSession) -> Video:
        session.add(video)
        await session.commit()
        return video


class RDSBotPersonalityRepository(BotPersonalityRepository):

    async def list_active(self, session: AsyncSession) -> List[BotPersonality]:
        stmt = select(BotPersonality).where(BotPersonality.is_active.is_(True)).order_by(BotPersonality.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, personality_id: int, session: AsyncSession) -> Optional[BotPersonality]:
        stmt = select(BotPersonality).where(
            BotPersonality.id == personality_id, BotPersonality.is_active.is_(True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_name(self, name: str, session: AsyncSession) -> Optional[BotPersonality]:
        stmt = select(BotPersonality).where(BotPersonality.name == name, BotPersonality.is_active.is_(True))
        result = await session.execute(stmt)
        return result.scalars().first()
