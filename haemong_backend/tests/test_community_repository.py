"""Statement-level behaviour of the SQLAlchemy community repository."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from haemong_backend.domain.community.entities import Comment, Like
from haemong_backend.domain.community.repo import PostQuery
from haemong_backend.infrastructure.implementations.community.rds_community_repository import (
    RDSCommunityRepository,
    like_pattern,
)


class UniqueViolation(Exception):
    sqlstate = "23505"


class ForeignKeyViolation(Exception):
    sqlstate = "23503"


def compile_pg(stmt):
    return stmt.compile(dialect=postgresql.dialect())


def mock_session(*scalars):
    session = AsyncMock()
    session.add = MagicMock()
    session.scalar.side_effect = list(scalars)
    session.execute.return_value = MagicMock(rowcount=1)
    return session


class TestToggleLike:

    @pytest.mark.asyncio
    async def test_like_inserts_and_bumps_counter(self):
        session = mock_session(None, 1)

        liked, count = await RDSCommunityRepository().toggle_post_like(uuid4(), uuid4(), session)

        assert (liked, count) == (True, 1)
        assert isinstance(session.add.call_args.args[0], Like)
        session.flush.assert_awaited_once()
        assert "likes_count + " in str(compile_pg(session.execute.call_args.args[0]))
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_like_keeps_existing_row(self):
        session = mock_session(None, 5)
        session.flush.side_effect = IntegrityError("INSERT INTO likes", {}, UniqueViolation("duplicate key"))

        liked, count = await RDSCommunityRepository().toggle_post_like(uuid4(), uuid4(), session)

        assert (liked, count) == (True, 5)
        session.rollback.assert_awaited_once()
        session.execute.assert_not_called()
        session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_comment_like(self):
        session = mock_session(None, 2)
        session.flush.side_effect = IntegrityError("INSERT INTO likes", {}, UniqueViolation("duplicate key"))

        liked, count = await RDSCommunityRepository().toggle_comment_like(uuid4(), uuid4(), session)

        assert (liked, count) == (True, 2)
        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(self):
        session = mock_session(None, 0)
        session.flush.side_effect = IntegrityError("INSERT INTO likes", {}, ForeignKeyViolation("no such post"))

        with pytest.raises(IntegrityError):
            await RDSCommunityRepository().toggle_post_like(uuid4(), uuid4(), session)
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unlike_already_removed_skips_decrement(self):
        session = mock_session(uuid4(), 3)
        session.execute.return_value = MagicMock(rowcount=0)

        liked, count = await RDSCommunityRepository().toggle_post_like(uuid4(), uuid4(), session)

        assert (liked, count) == (False, 3)
        assert session.execute.await_count == 1
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_bookmark(self):
        session = mock_session(None)
        session.flush.side_effect = IntegrityError("INSERT INTO bookmarks", {}, UniqueViolation("duplicate key"))

        assert await RDSCommunityRepository().toggle_bookmark(uuid4(), uuid4(), session) is True
        session.commit.assert_not_called()


class TestDeleteComment:

    @pytest.mark.asyncio
    async def test_counter_is_recounted_after_cascade(self):
        post_id = uuid4()
        root = Comment(id=uuid4(), post_id=post_id, user_id=uuid4(), content="root")
        session = mock_session()

        await RDSCommunityRepository().delete_comment(root, session)

        delete_stmt, update_stmt = (c.args[0] for c in session.execute.call_args_list)
        assert str(compile_pg(delete_stmt)).startswith("DELETE FROM comments")
        update_sql = str(compile_pg(update_stmt))
        assert update_sql.startswith("UPDATE posts")
        assert "count(comments.id)" in update_sql
        assert "comments_count -" not in update_sql
        session.commit.assert_awaited_once()


class TestSearch:

    def test_wildcards_are_escaped(self):
        assert like_pattern("100%_a\\b") == "%100\\%\\_a\\\\b%"

    def test_plain_terms_are_wrapped(self):
        assert like_pattern("고래") == "%고래%"

    @pytest.mark.asyncio
    async def test_search_uses_escape_clause(self):
        session = mock_session()

        await RDSCommunityRepository().list_posts(PostQuery(search="50%"), 21, session)

        compiled = compile_pg(session.execute.call_args.args[0])
        sql = str(compiled)
        assert sql.count("ILIKE") == 2
        assert "ESCAPE" in sql
        assert "%50\\%%" in compiled.params.values()
