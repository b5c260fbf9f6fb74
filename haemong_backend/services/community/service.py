"""Community feed: sharing interpretations, browsing, likes and bookmarks."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.context.chat import strip_premium_footers
from haemong_backend.domain.chat.entities.message import MessageType
from haemong_backend.domain.chat.repo import ChatRoomRepository, MediaRepository, MessageRepository
from haemong_backend.domain.community.entities import Post
from haemong_backend.domain.community.repo import CommunityRepository, PostQuery
from haemong_backend.domain.errors import ForbiddenError, NotFoundError
from haemong_backend.services.auth.service import AuthService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50
DEFAULT_TITLE = "내 꿈 이야기"
TITLE_WORDS = 8
TITLE_MAX_LENGTH = 50

_TITLE_STRIP = re.compile(r"[^\w\s]")


def generate_title_from_dream(dream_content: str) -> str:
    words = _TITLE_STRIP.sub("", dream_content).split()[:TITLE_WORDS]
    title = " ".join(words)
    if len(title) > TITLE_MAX_LENGTH:
        title = title[: TITLE_MAX_LENGTH - 3] + "..."
    return title or DEFAULT_TITLE


@dataclass
class PostView:
    post: Post
    is_liked: bool = False
    is_bookmarked: bool = False


@dataclass
class PostPage:
    posts: List[PostView]
    has_more: bool
    next_cursor: Optional[str]


class CommunityService:
    def __init__(
        self,
        community_repo: CommunityRepository,
        room_repo: ChatRoomRepository,
        message_repo: MessageRepository,
        media_repo: MediaRepository,
        auth_service: AuthService,
    ):
        self._repo = community_repo
        self._rooms = room_repo
        self._messages = message_repo
        self._media = media_repo
        self._auth = auth_service

    async def create_post(
        self,
        user_id: UUID,
        chat_room_id: UUID,
        session: AsyncSession,
        title: Optional[str] = None,
        tags: Optional[List[str]] = None,
        is_public: bool = True,
    ) -> PostView:
        room = await self._rooms.get_by_id(chat_room_id, session)
        if room is None or room.user_id != user_id:
            raise NotFoundError("채팅룸을 찾을 수 없습니다")

        dream = await self._messages.first_of_type(room.id, MessageType.USER.value, session)
        reading = None
        if dream is not None:
            reading = await self._messages.first_of_type(room.id, MessageType.BOT.value, session, after=dream)
        if dream is None or reading is None:
            raise ForbiddenError("완성된 해몽이 없는 채팅룸입니다")

        image = await self._media.latest_image_for_room(room.id, session)
        post = Post(
            id=uuid4(),
            user_id=user_id,
            chat_room_id=room.id,
            title=title or generate_title_from_dream(dream.content),
            dream_content=dream.content,
            interpretation_content=strip_premium_footers(reading.content),
            image_url=image.image_url if image else None,
            bot_gender=room.bot_gender,
            bot_style=room.bot_style,
            tags=tags or [],
            is_public=is_public,
            is_premium=await self._auth.is_premium_user(user_id, session),
        )
        post = await self._repo.create_post(post, session)
        logger.info(f"[community] post={post.id} created from room={room.id}")
        return PostView(post=post)

    async def get_posts(
        self,
        query: PostQuery,
        session: AsyncSession,
        current_user_id: Optional[UUID] = None,
    ) -> PostPage:
        query.limit = max(1, min(query.limit, MAX_PAGE_SIZE))
        # one extra row tells us whether another page exists
        rows = await self._repo.list_posts(query, query.limit + 1, session)
        has_more = len(rows) > query.limit
        posts = rows[: query.limit]

        views = await self._decorate(posts, session, current_user_id)
        next_cursor = posts[-1].created_at.isoformat() if has_more and posts else None
        return PostPage(posts=views, has_more=has_more, next_cursor=next_cursor)

    async def get_post_by_id(
        self,
        post_id: UUID,
        session: AsyncSession,
        current_user_id: Optional[UUID] = None,
    ) -> PostView:
        post = await self._repo.get_post(post_id, session)
        if post is None or (not post.is_public and post.user_id != current_user_id):
            raise NotFoundError("게시글을 찾을 수 없습니다")
        await self._repo.increment_views(post_id, session)
        post = await self._repo.get_post(post_id, session)
        return (await self._decorate([post], session, current_user_id))[0]

    async def toggle_like(self, post_id: UUID, user_id: UUID, session: AsyncSession) -> Dict[str, object]:
        await self._require_post(post_id, session)
        is_liked, likes_count = await self._repo.toggle_post_like(user_id, post_id, session)
        return {"is_liked": is_liked, "likes_count": likes_count}

    async def toggle_bookmark(self, post_id: UUID, user_id: UUID, session: AsyncSession) -> Dict[str, bool]:
        await self._require_post(post_id, session)
        return {"is_bookmarked": await self._repo.toggle_bookmark(user_id, post_id, session)}

    async def _require_post(self, post_id: UUID, session: AsyncSession) -> Post:
        post = await self._repo.get_post(post_id, session)
        if post is None:
            raise NotFoundError("게시글을 찾을 수 없습니다")
        return post

    async def _decorate(
        self,
        posts: List[Post],
        session: AsyncSession,
        current_user_id: Optional[UUID],
    ) -> List[PostView]:
        if current_user_id is None or not posts:
            return [PostView(post=p) for p in posts]
        ids = [p.id for p in posts]
        liked = await self._repo.liked_post_ids(current_user_id, ids, session)
        bookmarked = await self._repo.bookmarked_post_ids(current_user_id, ids, session)
        return [PostView(post=p, is_liked=p.id in liked, is_bookmarked=p.id in bookmarked) for p in posts]
