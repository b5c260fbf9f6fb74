"""SQLAlchemy implementation of UserRepository using the primary DB."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.entities.media import GeneratedImage
from haemong_backend.domain.chat.entities.message import Message, MessageType
from haemong_backend.domain.user.entities import User
from haemong_backend.domain.user.repo import UserRepository


class RDSUserRepository(UserRepository):

    async def create(self, user: User, session: AsyncSession) -> User:
        session.add(user)
        try:
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        await session.refresh(user)
        return user

    async def get_by_id(self, uid: UUID, session: AsyncSession) -> Optional[User]:
        result = await session.execute(select(User).where(User.id == uid))
        return result.scalars().first()

    async def get_by_email(self, email: str, session: AsyncSession) -> Optional[User]:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def get_by_provider(self, provider: str, provider_id: str, session: AsyncSession) -> Optional[User]:
        stmt = select(User).where(User.provider == provider, User.provider_id == provider_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_nickname(self, nickname: str, session: AsyncSession) -> Optional[User]:
        result = await session.execute(select(User).where(User.nickname == nickname))
        return result.scalars().first()

    async def update_nickname(self, uid: UUID, nickname: str, session: AsyncSession) -> Optional[User]:
        await session.execute(update(User).where(User.id == uid).values(nickname=nickname))
        await session.commit()
        return await self.get_by_id(uid, session)

    async def update_subscription(
        self,
        uid: UUID,
        status: str,
        expires_at: Optional[datetime],
        session: AsyncSession,
    ) -> Optional[User]:
        stmt = (
            update(User)
            .where(User.id == uid)
            .values(subscription_status=status, premium_expires_at=expires_at)
        )
        await session.execute(stmt)
        await session.commit()
        return await self.get_by_id(uid, session)

    async def deactivate(self, uid: UUID, session: AsyncSession) -> None:
        await session.execute(update(User).where(User.id == uid).values(is_active=False))
        await session.commit()

    async def get_activity_stats(self, uid: UUID, month_start: datetime, session: AsyncSession) -> dict:
        room_ids = select(ChatRoom.id).where(ChatRoom.user_id == uid).scalar_subquery()
        interpretations = (
            select(func.count(Message.id))
            .where(Message.chat_room_id.in_(room_ids))
            .where(Message.type == MessageType.BOT.value, Message.interpretation.is_(True))
        )

        total_rooms = await session.scalar(select(func.count(ChatRoom.id)).where(ChatRoom.user_id == uid))
        total_interpretations = await session.scalar(interpretations)
        monthly = await session.scalar(interpretations.where(Message.created_at >= month_start))
        total_images = await session.scalar(
            select(func.count(GeneratedImage.id)).where(GeneratedImage.user_id == uid)
        )
        last_activity = await session.scalar(
            select(func.max(Message.created_at)).where(Message.chat_room_id.in_(room_ids))
        )
        return {
            "total_chat_rooms": total_rooms or 0,
            "total_interpretations": total_interpretations or 0,
            "monthly_interpretations": monthly or 0,
            "total_images": total_images or 0,
            "last_activity": last_activity,
        }
