"""Chat message entity."""
from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from haemong_backend.infrastructure.db.meta import Base


class MessageType(str, Enum):
    USER = "user"
    BOT = "bot"


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_room_created", "chat_room_id", "created_at"),)

    id             = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    chat_room_id   = Column(UUID(as_uuid=True), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    type           = Column(String(10), nullable=False)
    content        = Column(Text, nullable=False)
    image_url      = Column(String(2048), nullable=True)
    interpretation = Column(Boolean, nullable=False, default=False)   # true only for actual dream readings
    created_at     = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
