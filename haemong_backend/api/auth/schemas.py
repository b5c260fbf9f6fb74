"""Pydantic schemas for the auth API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from haemong_backend.api.base import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(CamelModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    nickname: Optional[str] = Field(None, min_length=2, max_length=20)


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(CamelModel):
    refresh_token: str


class MobileTokenRequest(CamelModel):
    """The native app already ran the Google flow and sends us the id_token."""
    id_token: str


class NicknameUpdate(CamelModel):
    nickname: str = Field(..., min_length=2, max_length=20)


class UserRead(CamelModel):
    id: UUID
    email: str
    nickname: str
    provider: str
    subscription_status: str
    premium_expires_at: Optional[datetime] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    user: UserRead
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class ProfileStats(CamelModel):
    total_interpretations: int = 0
    monthly_interpretations: int = 0
    total_images: int = 0
    total_chat_rooms: int = 0
    is_premium: bool = False
    joined_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None


class ProfileResponse(CamelModel):
    user: UserRead
    stats: ProfileStats


class NicknameAvailability(CamelModel):
    nickname: str
    available: bool


class GeneratedNickname(CamelModel):
    nickname: str


class MessageResponse(CamelModel):
    message: str
