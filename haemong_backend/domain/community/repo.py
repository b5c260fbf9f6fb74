"""Port interface for community persistence."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from .entities import Comment, Post, PostSort


@dataclass
class PostQuery:
    limit: int = 20
    offset: int = 0
    cursor: Optional[datetime] = None
    sort_by: PostSort = PostSort.LATEST
    tags: List[str] = field(default_factory=list)
    bot_gender: Optional[str] = None
    bot_style: Optional[str] = None
    search: Optional[str] = None


class CommunityRepository(ABC):
    """Posts, comments and the like/bookmark toggles.

    Toggles and comment writes keep the denormalised counters on posts and
    comments in step within the same transaction.
    """

    @abstractmethod
    async def create_post(self, post: Post, session: AsyncSession) -> Post: ...

    @abstractmethod
    async def get_post(self, post_id: UUID, session: AsyncSession) -> Optional[Post]: ...

    @abstractmethod
    async def list_posts(self, query: PostQuery, fetch_limit: int, session: AsyncSession) -> List[Post]: ...

    @abstractmethod
    async def increment_views(self, post_id: UUID, session: AsyncSession) -> None: ...

    @abstractmethod
    async def liked_post_ids(self, user_id: UUID, post_ids: Iterable[UUID], session: AsyncSession) -> Set[UUID]: ...

    @abstractmethod
    async def bookmarked_post_ids(self, user_id: UUID, post_ids: Iterable[UUID], session: AsyncSession) -> Set[UUID]: ...

    @abstractmethod
    async def toggle_post_like(self, user_id: UUID, post_id: UUID, session: AsyncSession) -> Tuple[bool, int]: ...

    @abstractmethod
    async def toggle_bookmark(self, user_id: UUID, post_id: UUID, session: AsyncSession) -> bool: ...

    @abstractmethod
    async def create_comment(self, comment: Comment, session: AsyncSession) -> Comment: ...

    @abstractmethod
    async def get_comment(self, comment_id: UUID, session: AsyncSession) -> Optional[Comment]: ...

    @abstractmethod
    async def list_comments(self, post_id: UUID, session: AsyncSession) -> List[Comment]: ...

    @abstractmethod
    async def liked_comment_ids(self, user_id: UUID, comment_ids: Iterable[UUID], session: AsyncSession) -> Set[UUID]: ...

    @abstractmethod
    async def toggle_comment_like(self, user_id: UUID, comment_id: UUID, session: AsyncSession) -> Tuple[bool, int]: ...

    @abstractmethod
    async def delete_comment(self, comment: Comment, session: AsyncSession) -> None: ...
