"""Threaded comments on community posts."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.community.entities import Comment
from haemong_backend.domain.community.repo import CommunityRepository
from haemong_backend.domain.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class CommentNode:
    comment: Comment
    is_liked: bool = False
    replies: List["CommentNode"] = field(default_factory=list)


class CommentService:
    def __init__(self, community_repo: CommunityRepository):
        self._repo = community_repo

    async def create_comment(
        self,
        post_id: UUID,
        user_id: UUID,
        content: str,
        session: AsyncSession,
        parent_comment_id: Optional[UUID] = None,
    ) -> CommentNode:
        post = await self._repo.get_post(post_id, session)
        if post is None:
            raise NotFoundError("게시글을 찾을 수 없습니다")
        if not post.is_public:
            raise ForbiddenError("비공개 게시글에는 댓글을 달 수 없습니다")

        if parent_comment_id is not None:
            parent = await self._repo.get_comment(parent_comment_id, session)
            if parent is None or parent.post_id != post_id:
                raise NotFoundError("부모 댓글을 찾을 수 없습니다")

        comment = Comment(
            id=uuid4(),
            post_id=post_id,
            user_id=user_id,
            parent_comment_id=parent_comment_id,
            content=content,
        )
        comment = await self._repo.create_comment(comment, session)
        return CommentNode(comment=comment)

    async def get_comments(
        self,
        post_id: UUID,
        session: AsyncSession,
        current_user_id: Optional[UUID] = None,
    ) -> List[CommentNode]:
        """Comments as a tree: roots in creation order, replies under their parent."""
        comments = await self._repo.list_comments(post_id, session)
        liked = set()
        if current_user_id is not None and comments:
            liked = await self._repo.liked_comment_ids(current_user_id, [c.id for c in comments], session)

        nodes: Dict[UUID, CommentNode] = {c.id: CommentNode(comment=c, is_liked=c.id in liked) for c in comments}
        roots: List[CommentNode] = []
        for c in comments:
            node = nodes[c.id]
            if c.parent_comment_id is None:
                roots.append(node)
            elif c.parent_comment_id in nodes:
                nodes[c.parent_comment_id].replies.append(node)
        return roots

    async def toggle_comment_like(self, comment_id: UUID, user_id: UUID, session: AsyncSession) -> Dict[str, object]:
        if await self._repo.get_comment(comment_id, session) is None:
            raise NotFoundError("댓글을 찾을 수 없습니다")
        is_liked, likes_count = await self._repo.toggle_comment_like(user_id, comment_id, session)
        return {"is_liked": is_liked, "likes_count": likes_count}

    async def delete_comment(self, comment_id: UUID, user_id: UUID, session: AsyncSession) -> None:
        comment = await self._repo.get_comment(comment_id, session)
        if comment is None:
            raise NotFoundError("댓글을 찾을 수 없습니다")
        if comment.user_id != user_id:
            raise ForbiddenError("댓글을 삭제할 권한이 없습니다")
        await self._repo.delete_comment(comment, session)
        logger.info(f"[community] comment={comment_id} deleted by user={user_id}")
