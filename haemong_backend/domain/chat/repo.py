"""Port interfaces for chat persistence."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from .entities.bot_settings import BotPersonality, BotSettings
from .entities.chat_room import ChatRoom
from .entities.media import GeneratedImage, Video
from .entities.message import Message


class ChatRoomRepository(ABC):
    """Chat rooms and the bot-settings lookup table.

    ``create`` lets the driver's IntegrityError surface unchanged so callers
    can recognise duplicate-key races.
    """

    @abstractmethod
    async def find_by_user_and_date(
        self,
        user_id: UUID,
        day: date,
        session: AsyncSession,
        include_inactive: bool = False,
    ) -> Optional[ChatRoom]: ...

    @abstractmethod
    async def create(self, room: ChatRoom, session: AsyncSession) -> ChatRoom: ...

    @abstractmethod
    async def get_by_id(self, room_id: UUID, session: AsyncSession) -> Optional[ChatRoom]: ...

    @abstractmethod
    async def list_by_user(self, user_id: UUID, limit: int, session: AsyncSession) -> List[ChatRoom]: ...

    @abstractmethod
    async def update_title(self, room_id: UUID, title: str, session: AsyncSession) -> Optional[ChatRoom]: ...

    @abstractmethod
    async def update_bot_settings(self, room_id: UUID, bot_settings_id: int, session: AsyncSession) -> Optional[ChatRoom]: ...

    @abstractmethod
    async def set_active(self, room_id: UUID, active: bool, session: AsyncSession) -> None: ...

    @abstractmethod
    async def find_bot_settings(self, gender: str, style: str, session: AsyncSession) -> Optional[BotSettings]: ...


class MessageRepository(ABC):
    @abstractmethod
    async def create(self, message: Message, session: AsyncSession) -> Message: ...

    @abstractmethod
    async def list_by_room(self, room_id: UUID, limit: int, offset: int, session: AsyncSession) -> List[Message]: ...

    @abstractmethod
    async def list_recent(self, room_id: UUID, limit: int, session: AsyncSession) -> List[Message]:
        """Most recent *limit* messages, returned oldest first."""

    @abstractmethod
    async def count_by_room(self, room_id: UUID, session: AsyncSession) -> int: ...

    @abstractmethod
    async def latest_of_type(self, room_id: UUID, message_type: str, session: AsyncSession) -> Optional[Message]: ...

    @abstractmethod
    async def first_of_type(self, room_id: UUID, message_type: str, session: AsyncSession, after: Optional[Message] = None) -> Optional[Message]: ...


class MediaRepository(ABC):
    @abstractmethod
    async def add_image(self, image: GeneratedImage, session: AsyncSession) -> GeneratedImage: ...

    @abstractmethod
    async def latest_image_for_room(self, room_id: UUID, session: AsyncSession) -> Optional[GeneratedImage]: ...

    @abstractmethod
    async def add_video(self, video: Video, session: AsyncSession) -> Video: ...


class BotPersonalityRepository(ABC):
    @abstractmethod
    async def list_active(self, session: AsyncSession) -> List[BotPersonality]: ...

    @abstractmethod
    async def get_by_id(self, personality_id: int, session: AsyncSession) -> Optional[BotPersonality]: ...

    @abstractmethod
    async def get_by_name(self, name: str, session: AsyncSession) -> Optional[BotPersonality]: ...
