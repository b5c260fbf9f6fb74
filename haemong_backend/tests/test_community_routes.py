"""Query and body parsing on the community routes."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from haemong_backend.api.community.routes import router, split_tags
from haemong_backend.api.errors import register_error_handlers
from haemong_backend.dependencies import (
    get_community_service,
    get_current_user_id,
    get_optional_user_id,
    get_session,
)
from haemong_backend.services.community.service import PostPage

USER_ID = uuid4()


@pytest.fixture
def community_service():
    service = AsyncMock()
    service.get_posts.return_value = PostPage(posts=[], has_more=False, next_cursor=None)
    return service


@pytest.fixture
def client(community_service, session):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router)
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_community_service] = lambda: community_service
    app.dependency_overrides[get_optional_user_id] = lambda: None
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    return TestClient(app, raise_server_exceptions=False)


def requested_tags(community_service):
    return community_service.get_posts.call_args.args[0].tags


class TestTagFilter:

    def test_split_tags(self):
        assert split_tags(None) == []
        assert split_tags(["a, b", "", "c"]) == ["a", "b", "c"]

    def test_comma_separated(self, client, community_service):
        resp = client.get("/community/posts", params={"tags": "nightmare,flying"})

        assert resp.status_code == 200
        assert requested_tags(community_service) == ["nightmare", "flying"]

    def test_repeated_parameter(self, client, community_service):
        resp = client.get("/community/posts?tags=nightmare&tags=flying")

        assert resp.status_code == 200
        assert requested_tags(community_service) == ["nightmare", "flying"]

    def test_blank_entries_are_dropped(self, client, community_service):
        client.get("/community/posts?tags=,고래,&tags=")
        assert requested_tags(community_service) == ["고래"]


class TestPostCreateValidation:

    def test_overlong_tag_is_rejected(self, client, community_service):
        resp = client.post("/community/posts", json={"chatRoomId": str(uuid4()), "tags": ["x" * 51]})

        assert resp.status_code == 400
        community_service.create_post.assert_not_called()

    def test_empty_tag_is_rejected(self, client, community_service):
        resp = client.post("/community/posts", json={"chatRoomId": str(uuid4()), "tags": ["  "]})

        assert resp.status_code == 400
        community_service.create_post.assert_not_called()

    def test_too_many_tags_are_rejected(self, client, community_service):
        tags = [f"tag{i}" for i in range(11)]
        resp = client.post("/community/posts", json={"chatRoomId": str(uuid4()), "tags": tags})

        assert resp.status_code == 400
