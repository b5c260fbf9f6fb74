"""Premium dream video generation."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.context.chat import ChatContextBuilder
from haemong_backend.domain.chat.entities.media import Video
from haemong_backend.domain.chat.repo import MediaRepository
from haemong_backend.domain.errors import (
    FeatureDisabledError,
    NotFoundError,
    PremiumRequiredError,
    UpstreamServiceError,
)
from haemong_backend.infrastructure.video.replicate_provider import VideoProviderChain
from haemong_backend.services.auth.service import AuthService
from haemong_backend.services.chat.ai_service import AiService
from haemong_backend.services.chat.chat_room_service import ChatRoomService
from haemong_backend.services.chat.message_service import MessageService

logger = logging.getLogger(__name__)


class VideoGenerationError(UpstreamServiceError):
    pass


@dataclass
class VideoOutcome:
    video_url: str
    title: str
    interpretation: str
    dream_content: str
    style: Dict[str, str]
    model: str
    is_static_image: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class VideoService:
    def __init__(
        self,
        chat_room_service: ChatRoomService,
        message_service: MessageService,
        auth_service: AuthService,
        ai_service: AiService,
        media_repo: MediaRepository,
        video_chain: VideoProviderChain,
        context_builder: ChatContextBuilder,
        enabled: bool = True,
    ):
        self._rooms = chat_room_service
        self._messages = message_service
        self._auth = auth_service
        self._ai = ai_service
        self._media = media_repo
        self._videos = video_chain
        self._context = context_builder
        self._enabled = enabled

    async def generate_dream_video(self, user_id: UUID, session: AsyncSession) -> VideoOutcome:
        if not self._enabled:
            raise FeatureDisabledError("영상 생성 기능이 현재 비활성화되어 있습니다.")
        if not await self._auth.is_premium_user(user_id, session):
            raise PremiumRequiredError("영상 생성은 프리미엄 회원 전용 기능입니다.")

        room = await self._rooms.get_todays_chat_room(user_id)
        dream = await self._messages.get_latest_user_message(room.id, session)
        if dream is None:
            raise NotFoundError("해몽할 꿈 내용을 찾을 수 없습니다. 먼저 꿈을 입력해주세요.")

        gender, style = room.bot_gender, room.bot_style
        interpretation = await self._ai.generate_short_interpretation(dream.content, gender, style)
        result = await self._videos.generate(self._context.build_video_prompt(dream.content, style))
        if not result.ok:
            raise VideoGenerationError("꿈 영상 생성에 실패했습니다. 잠시 후 다시 시도해주세요.")

        outcome = VideoOutcome(
            video_url=result.url,
            title=self._context.video_title(dream.content),
            interpretation=interpretation,
            dream_content=dream.content,
            style={"gender": gender, "approach": style},
            model=result.model,
            is_static_image=result.is_static_image,
        )
        await self._save(user_id, room.id, outcome, session)
        return outcome

    async def _save(self, user_id: UUID, room_id: UUID, outcome: VideoOutcome, session: AsyncSession) -> None:
        try:
            await self._media.add_video(
                Video(
                    id=uuid4(),
                    user_id=user_id,
                    chat_room_id=room_id,
                    title=outcome.title,
                    description=outcome.interpretation,
                    video_url=outcome.video_url,
                    generation_model=outcome.model,
                    style=outcome.style,
                    dream_content=outcome.dream_content,
                ),
                session,
            )
        except Exception as e:
            # the video exists at the provider; losing the record is not fatal
            await session.rollback()
            logger.error(f"Failed to save video record for room {room_id}: {e}")
