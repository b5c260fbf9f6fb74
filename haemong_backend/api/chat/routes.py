# haemong_backend/api/chat/routes.py

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.context.chat import BOT_SETTINGS_OPTIONS
from haemong_backend.dependencies import (
    get_bot_personality_service,
    get_chat_room_service,
    get_current_user_id,
    get_image_service,
    get_message_service,
    get_session,
    get_video_service,
)
from haemong_backend.services.chat.bot_personality_service import BotPersonalityService
from haemong_backend.services.chat.chat_room_service import ChatRoomService
from haemong_backend.services.chat.message_service import MessageService
from haemong_backend.services.media.image_service import ImageService
from haemong_backend.services.media.video_service import VideoService
from .schemas import (
    BotPersonalityRead,
    BotSettingsUpdate,
    ChatRoomCreate,
    ChatRoomDetail,
    ChatRoomRead,
    ImageGenerationResponse,
    MessageCreate,
    MessageList,
    MessageRead,
    SendMessageResponse,
    TodayChatRoomResponse,
    VideoGenerationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/chat",
    tags=["chat"]
)


# ─────────────────────────────── rooms ─────────────────────────────── #

@router.get("/rooms/today", response_model=TodayChatRoomResponse)
async def get_todays_chat_room(
    session: AsyncSession = Depends(get_session),
    chat_room_service: ChatRoomService = Depends(get_chat_room_service),
    message_service: MessageService = Depends(get_message_service),
    user_id: UUID = Depends(get_current_user_id),
):
    """Get (or create) today's room; an empty room gets the persona welcome."""
    room = await chat_room_service.get_todays_chat_room(user_id)
    welcome = await message_service.initialize_chat_room(room, session)
    messages = await message_service.get_chat_room_messages(room.id, session)
    total = await message_service.get_message_count(room.id, session)
    logger.info(f"[chat] today: user={user_id} room={room.id} messages={total}")
    return TodayChatRoomResponse(
        chat_room=ChatRoomRead.model_validate(room),
        messages=[MessageRead.model_validate(m) for m in messages],
        total_messages=total,
        welcome_message=MessageRead.model_validate(welcome) if welcome else None,
    )


@router.get("/rooms", response_model=List[ChatRoomRead])
async def list_chat_rooms(
    limit: int = Query(50, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    chat_room_service: ChatRoomService = Depends(get_chat_room_service),
    user_id: UUID = Depends(get_current_user_id),
):
    rooms = await chat_room_service.get_user_chat_rooms(user_id, session, limit=limit)
    return [ChatRoomRead.model_validate(r) for r in rooms]


@router.get("/rooms/{room_id}", response_model=ChatRoomDetail)
async def get_chat_room(
    room_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    chat_room_service: ChatRoomService = Depends(get_chat_room_service),
    message_service: MessageService = Depends(get_message_service),
    user_id: UUID = Depends(get_current_user_id),
):
    room = await chat_room_service.get_owned_chat_room(user_id, room_id, session)
    messages = await message_service.get_chat_room_messages(room.id, session, limit=limit, offset=offset)
    total = await message_service.get_message_count(room.id, session)
    return ChatRoomDetail(
        chat_room=ChatRoomRead.model_validate(room),
        messages=[MessageRead.model_validate(m) for m in messages],
        total_messages=total,
    )


@router.post("/rooms", response_model=ChatRoomRead, status_code=status.HTTP_201_CREATED)
async def create_chat_room(
    body: ChatRoomCreate,
    session: AsyncSession = Depends(get_session),
    chat_room_service: ChatRoomService = Depends(get_chat_room_service),
    message_service: MessageService = Depends(get_message_service),
    user_id: UUID = Depends(get_current_user_id),
):
    settings_in = body.bot_settings
    room = await chat_room_service.create_chat_room(
        user_id,
        session,
        title=body.title,
        gender=settings_in.gender.value if settings_in else None,
        style=settings_in.style.value if settings_in else None,
    )
    await message_service.initialize_chat_room(room, session)
    logger.info(f"[chat] create: user={user_id} room={room.id}")
    return ChatRoomRead.model_validate(room)


@router.put("/rooms/{room_id}/bot-settings", response_model=ChatRoomRead)
async def update_bot_settings(
    room_id: UUID,
    body: BotSettingsUpdate,
    session: AsyncSession = Depends(get_session),
    chat_room_service: ChatRoomService = Depends(get_chat_room_service),
    user_id: UUID = Depends(get_current_user_id),
):
    room = await chat_room_service.update_bot_settings(
        user_id, room_id, body.gender.value, body.style.value, session
    )
    logger.info(f"[chat] bot settings: room={room_id} -> {body.gender.value}/{body.style.value}")
    return ChatRoomRead.model_validate(room)


# ────────────────────────────── messages ───────────────────────────── #

@router.post("/rooms/{room_id}/messages", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    room_id: UUID,
    body: MessageCreate,
    session: AsyncSession = Depends(get_session),
    message_service: MessageService = Depends(get_message_service),
    user_id: UUID = Depends(get_current_user_id),
):
    result = await message_service.send_message(user_id, room_id, body.content, session)
    return SendMessageResponse(
        user_message=MessageRead.model_validate(result["user_message"]),
        bot_message=MessageRead.model_validate(result["bot_message"]),
    )


@router.get("/rooms/{room_id}/messages", response_model=MessageList)
async def list_messages(
    room_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    chat_room_service: ChatRoomService = Depends(get_chat_room_service),
    message_service: MessageService = Depends(get_message_service),
    user_id: UUID = Depends(get_current_user_id),
):
    await chat_room_service.get_owned_chat_room(user_id, room_id, session)
    messages = await message_service.get_chat_room_messages(room_id, session, limit=limit, offset=offset)
    total = await message_service.get_message_count(room_id, session)
    return MessageList(
        messages=[MessageRead.model_validate(m) for m in messages],
        total_messages=total,
        limit=limit,
        offset=offset,
    )


# ─────────────────────────────── media ─────────────────────────────── #

@router.post("/rooms/today/messages/generate-image", response_model=ImageGenerationResponse)
async def generate_image(
    session: AsyncSession = Depends(get_session),
    image_service: ImageService = Depends(get_image_service),
    user_id: UUID = Depends(get_current_user_id),
):
    outcome = await image_service.generate_image_for_today(user_id, session)
    return ImageGenerationResponse(
        success=outcome.success,
        message=outcome.message,
        is_premium=outcome.is_premium,
        upgrade_required=outcome.upgrade_required,
        image_url=outcome.image_url,
        image_message=MessageRead.model_validate(outcome.image_message) if outcome.image_message else None,
    )


@router.post("/rooms/today/messages/generate-video", response_model=VideoGenerationResponse)
async def generate_video(
    session: AsyncSession = Depends(get_session),
    video_service: VideoService = Depends(get_video_service),
    user_id: UUID = Depends(get_current_user_id),
):
    outcome = await video_service.generate_dream_video(user_id, session)
    return VideoGenerationResponse(**asdict(outcome))


# ──────────────────────────── bot catalogue ────────────────────────── #

@router.get("/bot-settings/options")
async def bot_settings_options(user_id: UUID = Depends(get_current_user_id)):
    return BOT_SETTINGS_OPTIONS


@router.get("/bot-personalities", response_model=List[BotPersonalityRead])
async def list_bot_personalities(
    session: AsyncSession = Depends(get_session),
    personality_service: BotPersonalityService = Depends(get_bot_personality_service),
    user_id: UUID = Depends(get_current_user_id),
):
    personalities = await personality_service.find_all(session)
    return [BotPersonalityRead.model_validate(p) for p in personalities]


@router.get("/bot-personalities/{personality_id}", response_model=BotPersonalityRead)
async def get_bot_personality(
    personality_id: int,
    session: AsyncSession = Depends(get_session),
    personality_service: BotPersonalityService = Depends(get_bot_personality_service),
    user_id: UUID = Depends(get_current_user_id),
):
    return BotPersonalityRead.model_validate(await personality_service.find_by_id(personality_id, session))
