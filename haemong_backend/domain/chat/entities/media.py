"""Generated media records (images and videos)."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from haemong_backend.infrastructure.db.meta import Base


class GeneratedImage(Base):
    __tablename__ = "generated_images"

    id               = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id          = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chat_room_id     = Column(UUID(as_uuid=True), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url        = Column(String(2048), nullable=False)
    image_path       = Column(String(1024), nullable=True)    # storage key; null when the provider URL was kept
    image_prompt     = Column(Text, nullable=True)
    generation_model = Column(String(50), nullable=True)
    bot_gender       = Column(String(10), nullable=True)
    bot_style        = Column(String(10), nullable=True)
    is_premium       = Column(Boolean, nullable=False, default=False)
    created_at       = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Video(Base):
    __tablename__ = "videos"

    id               = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id          = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chat_room_id     = Column(UUID(as_uuid=True), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    title            = Column(String(255), nullable=False)
    description      = Column(Text, nullable=True)
    video_url        = Column(String(2048), nullable=False)
    generation_model = Column(String(100), nullable=True)
    style            = Column(JSON, nullable=True)    # {gender, approach}
    dream_content    = Column(Text, nullable=True)
    created_at       = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
