"""Pydantic schemas for the chat API."""

from datetime import date as Date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field

from haemong_backend.api.base import CamelModel
from haemong_backend.domain.chat.entities.bot_settings import BotGender, BotStyle


class BotSettingsRead(CamelModel):
    gender: str
    style: str


class BotSettingsUpdate(CamelModel):
    gender: BotGender
    style: BotStyle


class ChatRoomRead(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    date: Date
    bot_settings: BotSettingsRead
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageRead(CamelModel):
    id: UUID
    chat_room_id: UUID
    type: str
    content: str
    image_url: Optional[str] = None
    interpretation: bool = False
    created_at: Optional[datetime] = None


class TodayChatRoomResponse(CamelModel):
    chat_room: ChatRoomRead
    messages: List[MessageRead]
    total_messages: int
    welcome_message: Optional[MessageRead] = None


class ChatRoomDetail(CamelModel):
    chat_room: ChatRoomRead
    messages: List[MessageRead]
    total_messages: int


class ChatRoomCreate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    bot_settings: Optional[BotSettingsUpdate] = None


class MessageCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)


class SendMessageResponse(CamelModel):
    user_message: MessageRead
    bot_message: MessageRead


class MessageList(CamelModel):
    messages: List[MessageRead]
    total_messages: int
    limit: int
    offset: int


class ImageGenerationResponse(CamelModel):
    success: bool
    message: str
    is_premium: bool
    upgrade_required: bool = False
    image_url: Optional[str] = None
    image_message: Optional[MessageRead] = None


class VideoGenerationResponse(CamelModel):
    video_url: str
    title: str
    interpretation: str
    dream_content: str
    style: Dict[str, str]
    model: str
    is_static_image: bool = False
    created_at: datetime


class BotPersonalityRead(CamelModel):
    id: int
    name: str
    display_name: str
    gender: str
    style: str
    personality_traits: Dict[str, Any] = Field(default_factory=dict)
    welcome_message: str
    image_style_prompt: Optional[str] = None
