"""User domain entity (SQLAlchemy model)."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from haemong_backend.infrastructure.db.meta import Base


class AuthProvider(str, Enum):
    EMAIL = "email"
    GOOGLE = "google"
    APPLE = "apple"


class SubscriptionStatus(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    EXPIRED = "expired"


class User(Base):
    """Account authenticated either by password or by an OAuth provider."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_users_provider_identity"),
    )

    id                  = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email               = Column(String(255), unique=True, nullable=False)
    nickname            = Column(String(50), unique=True, nullable=False)
    password_hash       = Column(String(255), nullable=True)
    provider            = Column(String(20), nullable=False, default=AuthProvider.EMAIL.value)
    provider_id         = Column(String(255), nullable=True)
    subscription_status = Column(String(20), nullable=False, default=SubscriptionStatus.FREE.value)
    premium_expires_at  = Column(DateTime(timezone=True), nullable=True)
    profile_image_url   = Column(String(1024), nullable=True)
    is_active           = Column(Boolean, nullable=False, default=True)
    created_at          = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at          = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_premium(self) -> bool:
        """Premium without an expiry never lapses; otherwise expiry must be in the future."""
        if self.subscription_status != SubscriptionStatus.PREMIUM.value:
            return False
        if self.premium_expires_at is None:
            return True
        expires = self.premium_expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires > datetime.now(timezone.utc)
