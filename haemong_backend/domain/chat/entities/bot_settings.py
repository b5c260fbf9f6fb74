"""Bot persona settings: which interpreter persona answers in a chat room."""
from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text, UniqueConstraint, func

from haemong_backend.infrastructure.db.meta import Base


class BotGender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class BotStyle(str, Enum):
    EASTERN = "eastern"
    WESTERN = "western"


DEFAULT_BOT_GENDER = BotGender.FEMALE
DEFAULT_BOT_STYLE = BotStyle.EASTERN
FALLBACK_BOT_GENDER = BotGender.MALE
FALLBACK_BOT_STYLE = BotStyle.EASTERN


class BotSettings(Base):
    """One row per (gender, style) combination."""

    __tablename__ = "bot_settings"
    __table_args__ = (UniqueConstraint("gender", "style", name="uq_bot_settings_gender_style"),)

    id         = Column(Integer, primary_key=True, autoincrement=True)
    gender     = Column(String(10), nullable=False)
    style      = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class BotPersonality(Base):
    """Catalogue entry describing a named interpreter persona."""

    __tablename__ = "bot_personalities"

    id                 = Column(Integer, primary_key=True, autoincrement=True)
    name               = Column(String(50), unique=True, nullable=False)
    display_name       = Column(String(100), nullable=False)
    gender             = Column(String(10), nullable=False)
    style              = Column(String(10), nullable=False)
    personality_traits = Column(JSON, nullable=False, default=dict)   # {traits, tone, approach, keywords}
    system_prompt      = Column(Text, nullable=False)
    welcome_message    = Column(Text, nullable=False)
    image_style_prompt = Column(Text, nullable=True)
    is_active          = Column(Boolean, nullable=False, default=True)
    created_at         = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at         = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
