# haemong_backend/api/community/routes.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.api.base import ApiResponse
from haemong_backend.dependencies import (
    get_comment_service,
    get_community_service,
    get_current_user_id,
    get_optional_user_id,
    get_session,
)
from haemong_backend.domain.chat.entities.bot_settings import BotGender, BotStyle
from haemong_backend.domain.community.entities import PostSort
from haemong_backend.domain.community.repo import PostQuery
from haemong_backend.services.community.comment_service import CommentService
from haemong_backend.services.community.service import CommunityService
from .schemas import (
    BookmarkResult,
    CommentCreate,
    CommentRead,
    LikeResult,
    PostCreate,
    PostList,
    PostRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/community", tags=["community"])


def split_tags(values: Optional[List[str]]) -> List[str]:
    """Accept both `?tags=a,b` and repeated `?tags=a&tags=b`."""
    return [tag.strip() for value in values or [] for tag in value.split(",") if tag.strip()]


# ─────────────────────────────── posts ─────────────────────────────── #

@router.post("/posts", response_model=ApiResponse[PostRead], status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    session: AsyncSession = Depends(get_session),
    community_service: CommunityService = Depends(get_community_service),
    user_id: UUID = Depends(get_current_user_id),
):
    view = await community_service.create_post(
        user_id,
        body.chat_room_id,
        session,
        title=body.title,
        tags=body.tags,
        is_public=body.is_public,
    )
    return ApiResponse[PostRead](data=PostRead.from_view(view), message="게시글이 작성되었습니다")


@router.get("/posts", response_model=ApiResponse[PostList])
async def list_posts(
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    cursor: Optional[datetime] = None,
    sort_by: PostSort = Query(PostSort.LATEST, alias="sortBy"),
    tags: Optional[List[str]] = Query(None),
    bot_gender: Optional[BotGender] = Query(None, alias="botGender"),
    bot_style: Optional[BotStyle] = Query(None, alias="botStyle"),
    search: Optional[str] = Query(None, max_length=100),
    session: AsyncSession = Depends(get_session),
    community_service: CommunityService = Depends(get_community_service),
    user_id: Optional[UUID] = Depends(get_optional_user_id),
):
    query = PostQuery(
        limit=limit,
        offset=offset,
        cursor=cursor,
        sort_by=sort_by,
        tags=split_tags(tags),
        bot_gender=bot_gender.value if bot_gender else None,
        bot_style=bot_style.value if bot_style else None,
        search=search,
    )
    page = await community_service.get_posts(query, session, current_user_id=user_id)
    return ApiResponse[PostList](
        data=PostList(
            posts=[PostRead.from_view(v) for v in page.posts],
            has_more=page.has_more,
            next_cursor=page.next_cursor,
        )
    )


@router.get("/posts/{post_id}", response_model=ApiResponse[PostRead])
async def get_post(
    post_id: UUID,
    session: AsyncSession = Depends(get_session),
    community_service: CommunityService = Depends(get_community_service),
    user_id: Optional[UUID] = Depends(get_optional_user_id),
):
    view = await community_service.get_post_by_id(post_id, session, current_user_id=user_id)
    return ApiResponse[PostRead](data=PostRead.from_view(view))


@router.post("/posts/{post_id}/like", response_model=ApiResponse[LikeResult])
async def toggle_post_like(
    post_id: UUID,
    session: AsyncSession = Depends(get_session),
    community_service: CommunityService = Depends(get_community_service),
    user_id: UUID = Depends(get_current_user_id),
):
    result = await community_service.toggle_like(post_id, user_id, session)
    return ApiResponse[LikeResult](data=LikeResult(**result))


@router.post("/posts/{post_id}/bookmark", response_model=ApiResponse[BookmarkResult])
async def toggle_post_bookmark(
    post_id: UUID,
    session: AsyncSession = Depends(get_session),
    community_service: CommunityService = Depends(get_community_service),
    user_id: UUID = Depends(get_current_user_id),
):
    result = await community_service.toggle_bookmark(post_id, user_id, session)
    return ApiResponse[BookmarkResult](data=BookmarkResult(**result))


# ────────────────────────────── comments ───────────────────────────── #

@router.post("/posts/{post_id}/comments", response_model=ApiResponse[CommentRead], status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: UUID,
    body: CommentCreate,
    session: AsyncSession = Depends(get_session),
    comment_service: CommentService = Depends(get_comment_service),
    user_id: UUID = Depends(get_current_user_id),
):
    node = await comment_service.create_comment(
        post_id, user_id, body.content, session, parent_comment_id=body.parent_comment_id
    )
    return ApiResponse[CommentRead](data=CommentRead.from_node(node), message="댓글이 작성되었습니다")


@router.get("/posts/{post_id}/comments", response_model=ApiResponse[List[CommentRead]])
async def list_comments(
    post_id: UUID,
    session: AsyncSession = Depends(get_session),
    comment_service: CommentService = Depends(get_comment_service),
    user_id: Optional[UUID] = Depends(get_optional_user_id),
):
    nodes = await comment_service.get_comments(post_id, session, current_user_id=user_id)
    return ApiResponse[List[CommentRead]](data=[CommentRead.from_node(n) for n in nodes])


@router.post("/comments/{comment_id}/like", response_model=ApiResponse[LikeResult])
async def toggle_comment_like(
    comment_id: UUID,
    session: AsyncSession = Depends(get_session),
    comment_service: CommentService = Depends(get_comment_service),
    user_id: UUID = Depends(get_current_user_id),
):
    result = await comment_service.toggle_comment_like(comment_id, user_id, session)
    return ApiResponse[LikeResult](data=LikeResult(**result))


@router.delete("/comments/{comment_id}", response_model=ApiResponse[None])
async def delete_comment(
    comment_id: UUID,
    session: AsyncSession = Depends(get_session),
    comment_service: CommentService = Depends(get_comment_service),
    user_id: UUID = Depends(get_current_user_id),
):
    await comment_service.delete_comment(comment_id, user_id, session)
    return ApiResponse[None](message="댓글이 삭제되었습니다")
