"""On-demand dream image generation for premium users."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.context.chat import ChatContextBuilder, strip_premium_footers
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.entities.media import GeneratedImage
from haemong_backend.domain.chat.entities.message import Message, MessageType
from haemong_backend.domain.chat.repo import MediaRepository
from haemong_backend.domain.errors import FeatureDisabledError
from haemong_backend.domain.ports.object_storage import ObjectStorage
from haemong_backend.infrastructure.image.openai_image_provider import ImageProviderChain
from haemong_backend.services.auth.service import AuthService
from haemong_backend.services.chat.ai_service import AiService
from haemong_backend.services.chat.chat_room_service import ChatRoomService
from haemong_backend.services.chat.message_service import MessageService

logger = logging.getLogger(__name__)

NO_DREAM = "해몽할 꿈 내용을 찾을 수 없습니다. 먼저 꿈을 입력해주세요."
UPGRADE_REQUIRED = "프리미엄 구독이 필요한 기능입니다. 업그레이드 후 이용해주세요."
GENERATION_FAILED = "이미지 생성에 실패했습니다. 다시 시도해주세요."
CONTENT_POLICY = "꿈 내용에 이미지로 표현할 수 없는 요소가 있습니다. 내용을 조금 바꿔 다시 시도해주세요."
GENERATED = "이미지가 성공적으로 생성되었습니다."
IMAGE_MESSAGE = "꿈의 이미지를 생성했습니다."
GENERATION_ERROR = "이미지 생성 중 오류가 발생했습니다."


@dataclass
class ImageGenerationOutcome:
    success: bool
    message: str
    is_premium: bool
    upgrade_required: bool = False
    image_url: Optional[str] = None
    image_message: Optional[Message] = None


class ImageService:
    def __init__(
        self,
        chat_room_service: ChatRoomService,
        message_service: MessageService,
        auth_service: AuthService,
        ai_service: AiService,
        media_repo: MediaRepository,
        image_chain: ImageProviderChain,
        storage: ObjectStorage,
        context_builder: ChatContextBuilder,
        enabled: bool = True,
    ):
        self._rooms = chat_room_service
        self._messages = message_service
        self._auth = auth_service
        self._ai = ai_service
        self._media = media_repo
        self._images = image_chain
        self._storage = storage
        self._context = context_builder
        self._enabled = enabled

    async def generate_image_for_today(self, user_id: UUID, session: AsyncSession) -> ImageGenerationOutcome:
        if not self._enabled:
            raise FeatureDisabledError("이미지 생성 기능이 현재 비활성화되어 있습니다.")

        room = await self._rooms.get_todays_chat_room(user_id)
        dream = await self._messages.get_latest_user_message(room.id, session)
        if dream is None:
            return ImageGenerationOutcome(success=False, message=NO_DREAM, is_premium=False)

        if not await self._auth.is_premium_user(user_id, session):
            return ImageGenerationOutcome(
                success=False, message=UPGRADE_REQUIRED, is_premium=False, upgrade_required=True
            )

        try:
            return await self._generate(user_id, room, dream, session)
        except Exception as exc:
            await session.rollback()
            logger.error(f"Image generation failed for room {room.id}: {exc}", exc_info=True)
            return ImageGenerationOutcome(success=False, message=GENERATION_ERROR, is_premium=True)

    async def _generate(
        self, user_id: UUID, room: ChatRoom, dream: Message, session: AsyncSession
    ) -> ImageGenerationOutcome:
        latest_bot = await self._messages.get_latest_bot_message(room.id, session)
        interpretation = strip_premium_footers(latest_bot.content) if latest_bot else ""
        summary = await self._ai.summarize_interpretation(interpretation) if interpretation else None

        prompt = self._context.build_image_prompt(dream.content, room.bot_style, summary)
        result = await self._images.generate(
            prompt,
            size="1024x1024",
            style="natural" if room.bot_style == "eastern" else "vivid",
        )
        if not result.ok:
            message = CONTENT_POLICY if result.error == "content_policy_violation" else GENERATION_FAILED
            return ImageGenerationOutcome(success=False, message=message, is_premium=True)

        stored = await self._storage.upload_image_from_url(result.url, user_id, room.id)
        if stored is None:
            logger.warning(f"Storage upload failed for room {room.id}; keeping provider URL")
        image_url = stored.url if stored else result.url

        await self._media.add_image(
            GeneratedImage(
                id=uuid4(),
                user_id=user_id,
                chat_room_id=room.id,
                image_url=image_url,
                image_path=stored.path if stored else None,
                image_prompt=prompt,
                generation_model=result.model,
                bot_gender=room.bot_gender,
                bot_style=room.bot_style,
                is_premium=True,
            ),
            session,
        )
        image_message = await self._messages.create_message(
            room.id, MessageType.BOT, IMAGE_MESSAGE, session, image_url=image_url
        )
        logger.info(f"[images] room={room.id} model={result.model} stored={stored is not None}")
        return ImageGenerationOutcome(
            success=True,
            message=GENERATED,
            is_premium=True,
            image_url=image_url,
            image_message=image_message,
        )
