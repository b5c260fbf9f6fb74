"""Community feed entities: posts, comments, likes and bookmarks."""
from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import relationship

from haemong_backend.domain.user.entities import User
from haemong_backend.infrastructure.db.meta import Base


class PostSort(str, Enum):
    LATEST = "latest"
    POPULAR = "popular"
    TRENDING = "trending"


class Post(Base):
    """A shared dream interpretation derived from one chat room."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_public_created", "is_public", "created_at"),
    )

    id                     = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id                = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chat_room_id           = Column(UUID(as_uuid=True), ForeignKey("chat_rooms.id", ondelete="SET NULL"), nullable=True)
    title                  = Column(String(100), nullable=False)
    dream_content          = Column(Text, nullable=False)
    interpretation_content = Column(Text, nullable=False)
    image_url              = Column(String(2048), nullable=True)
    bot_gender             = Column(String(10), nullable=False)
    bot_style              = Column(String(10), nullable=False)
    tags                   = Column(ARRAY(String(50)), nullable=False, default=list)
    is_public              = Column(Boolean, nullable=False, default=True)
    is_premium             = Column(Boolean, nullable=False, default=False)
    likes_count            = Column(Integer, nullable=False, default=0)
    comments_count         = Column(Integer, nullable=False, default=0)
    views_count            = Column(Integer, nullable=False, default=0)
    created_at             = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at             = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship(User, lazy="joined")


class Comment(Base):
    __tablename__ = "comments"

    id                = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    post_id           = Column(UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id           = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_comment_id = Column(UUID(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    content           = Column(Text, nullable=False)
    likes_count       = Column(Integer, nullable=False, default=0)
    created_at        = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at        = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship(User, lazy="joined")


class Like(Base):
    """A like on exactly one of a post or a comment."""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),
        UniqueConstraint("user_id", "comment_id", name="uq_likes_user_comment"),
        CheckConstraint("(post_id IS NULL) <> (comment_id IS NULL)", name="ck_likes_single_target"),
    )

    id         = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id    = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id    = Column(UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=True)
    comment_id = Column(UUID(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Bookmark(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_bookmarks_user_post"),)

    id         = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id    = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id    = Column(UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
