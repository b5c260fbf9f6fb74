# haemong_backend/tests/conftest.py
import logging
import os
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

# dependencies.py builds OpenAI clients at import time, which refuse an empty key
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

for name in (
    "asyncio",                   # selector_events etc.
    "sqlalchemy.pool",           # connection checkout/return
    "sqlalchemy.engine.Engine",  # SQL text if you ever set echo=True
    "botocore",
):
    logging.getLogger(name).setLevel(logging.WARNING)

# leave the application namespace free to speak at INFO
logging.getLogger("haemong_backend").setLevel(logging.INFO)


class FakeSession:
    """Stands in for an AsyncSession; ``name`` tells primary from admin."""

    def __init__(self, name: str = "primary"):
        self.name = name
        self.commit = AsyncMock()
        self.rollback = AsyncMock()


def session_factory(name: str = "primary"):
    @asynccontextmanager
    async def factory():
        yield FakeSession(name)
    return factory


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def make_session_factory():
    return session_factory


@pytest.fixture
def fast_sleep():
    return AsyncMock(side_effect=no_sleep)
