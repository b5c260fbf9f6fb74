"""SQLAlchemy implementation of CommunityRepository."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.community.entities import Bookmark, Comment, Like, Post, PostSort
from haemong_backend.domain.community.repo import CommunityRepository, PostQuery
from haemong_backend.infrastructure.db.errors import is_duplicate_key_error

logger = logging.getLogger(__name__)

TRENDING_WINDOW = timedelta(hours=24)
LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """Substring pattern for ILIKE with the wildcard characters in *term* escaped."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class RDSCommunityRepository(CommunityRepository):

    # ─────────────────────────── posts ─────────────────────────── #

    async def create_post(self, post: Post, session: AsyncSession) -> Post:
        session.add(post)
        await session.commit()
        return await self.get_post(post.id, session)

    async def get_post(self, post_id: UUID, session: AsyncSession) -> Optional[Post]:
        result = await session.execute(select(Post).where(Post.id == post_id))
        return result.scalars().first()

    async def list_posts(self, query: PostQuery, fetch_limit: int, session: AsyncSession) -> List[Post]:
        stmt = select(Post).where(Post.is_public.is_(True))

        if query.tags:
            stmt = stmt.where(Post.tags.overlap(query.tags))
        if query.bot_gender:
            stmt = stmt.where(Post.bot_gender == query.bot_gender)
        if query.bot_style:
            stmt = stmt.where(Post.bot_style == query.bot_style)
        if query.search:
            pattern = like_pattern(query.search)
            stmt = stmt.where(or_(
                Post.dream_content.ilike(pattern, escape=LIKE_ESCAPE),
                Post.interpretation_content.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        if query.cursor is not None:
            stmt = stmt.where(Post.created_at < query.cursor)

        if query.sort_by == PostSort.POPULAR:
            stmt = stmt.order_by(Post.likes_count.desc(), Post.created_at.desc())
        elif query.sort_by == PostSort.TRENDING:
            since = datetime.now(timezone.utc) - TRENDING_WINDOW
            stmt = stmt.where(Post.created_at >= since).order_by(Post.likes_count.desc(), Post.created_at.desc())
        else:
            stmt = stmt.order_by(Post.created_at.desc())

        stmt = stmt.offset(query.offset).limit(fetch_limit)
        result = await session.execute(stmt)
        return list(result.scalars().unique().all())

    async def increment_views(self, post_id: UUID, session: AsyncSession) -> None:
        await session.execute(update(Post).where(Post.id == post_id).values(views_count=Post.views_count + 1))
        await session.commit()

    async def liked_post_ids(self, user_id: UUID, post_ids: Iterable[UUID], session: AsyncSession) -> Set[UUID]:
        ids = list(post_ids)
        if not ids:
            return set()
        result = await session.execute(select(Like.post_id).where(Like.user_id == user_id, Like.post_id.in_(ids)))
        return set(result.scalars().all())

    async def bookmarked_post_ids(self, user_id: UUID, post_ids: Iterable[UUID], session: AsyncSession) -> Set[UUID]:
        ids = list(post_ids)
        if not ids:
            return set()
        stmt = select(Bookmark.post_id).where(Bookmark.user_id == user_id, Bookmark.post_id.in_(ids))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    async def toggle_post_like(self, user_id: UUID, post_id: UUID, session: AsyncSession) -> Tuple[bool, int]:
        existing = await session.scalar(select(Like.id).where(Like.user_id == user_id, Like.post_id == post_id))
        if existing is not None:
            removed = await session.execute(delete(Like).where(Like.id == existing))
            if removed.rowcount:
                await session.execute(
                    update(Post).where(Post.id == post_id).values(likes_count=func.greatest(Post.likes_count - 1, 0))
                )
            await session.commit()
            liked = False
        else:
            if await self._insert_toggle_row(session, Like(user_id=user_id, post_id=post_id)):
                await session.execute(update(Post).where(Post.id == post_id).values(likes_count=Post.likes_count + 1))
                await session.commit()
            liked = True

        count = await session.scalar(select(Post.likes_count).where(Post.id == post_id))
        return liked, count or 0

    async def toggle_bookmark(self, user_id: UUID, post_id: UUID, session: AsyncSession) -> bool:
        stmt = select(Bookmark.id).where(Bookmark.user_id == user_id, Bookmark.post_id == post_id)
        existing = await session.scalar(stmt)
        if existing is not None:
            await session.execute(delete(Bookmark).where(Bookmark.id == existing))
            await session.commit()
            return False
        if await self._insert_toggle_row(session, Bookmark(user_id=user_id, post_id=post_id)):
            await session.commit()
        return True

    # ───────────────────────── comments ────────────────────────── #

    async def create_comment(self, comment: Comment, session: AsyncSession) -> Comment:
        session.add(comment)
        await session.execute(
            update(Post).where(Post.id == comment.post_id).values(comments_count=Post.comments_count + 1)
        )
        await session.commit()
        return await self.get_comment(comment.id, session)

    async def get_comment(self, comment_id: UUID, session: AsyncSession) -> Optional[Comment]:
        result = await session.execute(select(Comment).where(Comment.id == comment_id))
        return result.scalars().first()

    async def list_comments(self, post_id: UUID, session: AsyncSession) -> List[Comment]:
        stmt = select(Comment).where(Comment.post_id == post_id).order_by(Comment.created_at.asc())
        result = await session.execute(stmt)
        return list(result.scalars().unique().all())

    async def liked_comment_ids(self, user_id: UUID, comment_ids: Iterable[UUID], session: AsyncSession) -> Set[UUID]:
        ids = list(comment_ids)
        if not ids:
            return set()
        stmt = select(Like.comment_id).where(Like.user_id == user_id, Like.comment_id.in_(ids))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    async def toggle_comment_like(self, user_id: UUID, comment_id: UUID, session: AsyncSession) -> Tuple[bool, int]:
        stmt = select(Like.id).where(Like.user_id == user_id, Like.comment_id == comment_id)
        existing = await session.scalar(stmt)
        if existing is not None:
            removed = await session.execute(delete(Like).where(Like.id == existing))
            if removed.rowcount:
                await session.execute(
                    update(Comment)
                    .where(Comment.id == comment_id)
                    .values(likes_count=func.greatest(Comment.likes_count - 1, 0))
                )
            await session.commit()
            liked = False
        else:
            if await self._insert_toggle_row(session, Like(user_id=user_id, comment_id=comment_id)):
                await session.execute(
                    update(Comment).where(Comment.id == comment_id).values(likes_count=Comment.likes_count + 1)
                )
                await session.commit()
            liked = True

        count = await session.scalar(select(Comment.likes_count).where(Comment.id == comment_id))
        return liked, count or 0

    async def delete_comment(self, comment: Comment, session: AsyncSession) -> None:
        # replies at every depth go with it through ON DELETE CASCADE
        await session.execute(delete(Comment).where(Comment.id == comment.id))
        remaining = select(func.count(Comment.id)).where(Comment.post_id == comment.post_id).scalar_subquery()
        await session.execute(update(Post).where(Post.id == comment.post_id).values(comments_count=remaining))
        await session.commit()

    # ───────────────────────── helpers ─────────────────────────── #

    async def _insert_toggle_row(self, session: AsyncSession, row) -> bool:
        """Flush a new like/bookmark row. False when a concurrent request inserted it first."""
        session.add(row)
        try:
            await session.flush()
        except IntegrityError as exc:
            await session.rollback()
            if not is_duplicate_key_error(exc):
                raise
            logger.info(f"Concurrent toggle detected for {type(row).__name__}; keeping existing row")
            return False
        return True
