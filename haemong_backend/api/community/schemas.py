"""Pydantic schemas for the community API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import Field, StringConstraints

from haemong_backend.api.base import CamelModel
from haemong_backend.services.community.comment_service import CommentNode
from haemong_backend.services.community.service import PostView

Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


class AuthorRead(CamelModel):
    id: UUID
    nickname: str
    profile_image_url: Optional[str] = None


class PostCreate(CamelModel):
    chat_room_id: UUID
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: List[Tag] = Field(default_factory=list, max_length=10)
    is_public: bool = True


class PostRead(CamelModel):
    id: UUID
    title: str
    dream_content: str
    interpretation_content: str
    image_url: Optional[str] = None
    bot_gender: str
    bot_style: str
    tags: List[str] = Field(default_factory=list)
    is_public: bool
    is_premium: bool
    likes_count: int = 0
    comments_count: int = 0
    views_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author: Optional[AuthorRead] = None
    is_liked: bool = False
    is_bookmarked: bool = False

    @classmethod
    def from_view(cls, view: PostView) -> "PostRead":
        read = cls.model_validate(view.post)
        read.is_liked = view.is_liked
        read.is_bookmarked = view.is_bookmarked
        return read


class PostList(CamelModel):
    posts: List[PostRead]
    has_more: bool
    next_cursor: Optional[str] = None


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=500)
    parent_comment_id: Optional[UUID] = None


class CommentRead(CamelModel):
    id: UUID
    post_id: UUID
    parent_comment_id: Optional[UUID] = None
    content: str
    likes_count: int = 0
    created_at: Optional[datetime] = None
    author: Optional[AuthorRead] = None
    is_liked: bool = False
    replies: List[CommentRead] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: CommentNode) -> "CommentRead":
        read = cls.model_validate(node.comment)
        read.is_liked = node.is_liked
        read.replies = [cls.from_node(child) for child in node.replies]
        return read


class LikeResult(CamelModel):
    is_liked: bool
    likes_count: int


class BookmarkResult(CamelModel):
    is_bookmarked: bool
