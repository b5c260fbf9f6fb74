"""Chat messages: the user/bot turn loop."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.context.chat import ChatContextBuilder
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.entities.message import Message, MessageType
from haemong_backend.domain.chat.repo import MessageRepository
from haemong_backend.services.auth.service import AuthService
from .ai_service import AiService
from .chat_room_service import ChatRoomService

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(
        self,
        message_repo: MessageRepository,
        chat_room_service: ChatRoomService,
        ai_service: AiService,
        auth_service: AuthService,
        context_builder: ChatContextBuilder,
    ):
        self._repo = message_repo
        self._rooms = chat_room_service
        self._ai = ai_service
        self._auth = auth_service
        self._context = context_builder

    async def send_message(
        self,
        user_id: UUID,
        chat_room_id: UUID,
        content: str,
        session: AsyncSession,
    ) -> Dict[str, Message]:
        room = await self._rooms.get_owned_chat_room(user_id, chat_room_id, session)

        # history is taken before the new turn so the dream is not sent twice
        history = await self._repo.list_recent(chat_room_id, self._context.history_window, session)
        user_message = await self.create_message(chat_room_id, MessageType.USER, content, session)

        reply = await self._ai.generate_dream_interpretation(content, room.bot_gender, room.bot_style, history)
        is_interpretation = self._context.is_actual_interpretation(content, reply, history)
        is_premium = await self._auth.is_premium_user(user_id, session)

        bot_message = await self.create_message(
            chat_room_id,
            MessageType.BOT,
            self._context.with_image_footer(reply, is_premium),
            session,
            interpretation=is_interpretation,
        )
        logger.info(f"[chat] room={chat_room_id} interpretation={is_interpretation} premium={is_premium}")
        return {"user_message": user_message, "bot_message": bot_message}

    async def create_message(
        self,
        chat_room_id: UUID,
        message_type: MessageType,
        content: str,
        session: AsyncSession,
        image_url: Optional[str] = None,
        interpretation: bool = False,
    ) -> Message:
        message = Message(
            id=uuid4(),
            chat_room_id=chat_room_id,
            type=message_type.value,
            content=content,
            image_url=image_url,
            interpretation=interpretation,
        )
        return await self._repo.create(message, session)

    async def get_chat_room_messages(
        self,
        chat_room_id: UUID,
        session: AsyncSession,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Message]:
        return await self._repo.list_by_room(chat_room_id, limit, offset, session)

    async def get_message_count(self, chat_room_id: UUID, session: AsyncSession) -> int:
        return await self._repo.count_by_room(chat_room_id, session)

    async def get_latest_user_message(self, chat_room_id: UUID, session: AsyncSession) -> Optional[Message]:
        return await self._repo.latest_of_type(chat_room_id, MessageType.USER.value, session)

    async def get_latest_bot_message(self, chat_room_id: UUID, session: AsyncSession) -> Optional[Message]:
        return await self._repo.latest_of_type(chat_room_id, MessageType.BOT.value, session)

    async def initialize_chat_room(self, room: ChatRoom, session: AsyncSession) -> Optional[Message]:
        """Post the persona welcome message into an empty room; otherwise return its first message."""
        existing = await self._repo.list_by_room(room.id, 1, 0, session)
        if existing:
            return existing[0]
        welcome = self._ai.generate_welcome_message(room.bot_gender, room.bot_style)
        return await self.create_message(room.id, MessageType.BOT, welcome, session)
