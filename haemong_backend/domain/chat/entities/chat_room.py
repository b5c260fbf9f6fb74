"""Chat room: one conversation per user per calendar day."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from haemong_backend.infrastructure.db.meta import Base
from .bot_settings import BotSettings, FALLBACK_BOT_GENDER, FALLBACK_BOT_STYLE


class ChatRoom(Base):
    __tablename__ = "chat_rooms"
    # the (user_id, date) constraint is what makes daily acquisition converge
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_chat_rooms_user_date"),)

    id              = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id         = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title           = Column(String(255), nullable=False)
    date            = Column(Date, nullable=False)
    bot_settings_id = Column(Integer, ForeignKey("bot_settings.id"), nullable=False)
    is_active       = Column(Boolean, nullable=False, default=True)
    created_at      = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at      = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    bot_settings = relationship(BotSettings, lazy="joined")

    @property
    def bot_gender(self) -> str:
        return self.bot_settings.gender if self.bot_settings else FALLBACK_BOT_GENDER.value

    @property
    def bot_style(self) -> str:
        return self.bot_settings.style if self.bot_settings else FALLBACK_BOT_STYLE.value
