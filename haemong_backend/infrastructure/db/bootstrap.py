# haemong_backend/infrastructure/db/bootstrap.py
"""
Engine / session bootstrap.

Two engines are kept: the primary one (regular credentials) and an admin one
(service-role credentials, used only to confirm rows that row-level security
may hide from the primary connection). When no admin URL is configured the
admin factory reuses the primary engine.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from haemong_backend.config import Settings

logger = logging.getLogger(__name__)

engine: Optional[AsyncEngine] = None
admin_engine: Optional[AsyncEngine] = None
SessionLocal: Optional[async_sessionmaker[AsyncSession]] = None
AdminSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


async def init_engine(cfg: Settings) -> None:
    global engine, admin_engine, SessionLocal, AdminSessionLocal
    if engine is not None:
        return

    engine = create_async_engine(cfg.db_url, echo=cfg.db_echo, pool_pre_ping=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    if cfg.db_admin_url and cfg.db_admin_url != cfg.db_url:
        admin_engine = create_async_engine(cfg.db_admin_url, echo=cfg.db_echo, pool_pre_ping=True)
    else:
        admin_engine = engine
    AdminSessionLocal = async_sessionmaker(admin_engine, expire_on_commit=False)
    logger.info(f"DB engines initialised (separate admin engine: {admin_engine is not engine})")


async def dispose_engine() -> None:
    global engine, admin_engine, SessionLocal, AdminSessionLocal
    if admin_engine is not None and admin_engine is not engine:
        await admin_engine.dispose()
    if engine is not None:
        await engine.dispose()
    engine = admin_engine = None
    SessionLocal = AdminSessionLocal = None


def _require(factory: Optional[async_sessionmaker[AsyncSession]]) -> async_sessionmaker[AsyncSession]:
    if factory is None:
        raise RuntimeError("Database engine not initialised; call init_engine() first")
    return factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Standalone session for work outside a request (background tasks, gates)."""
    async with _require(SessionLocal)() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def admin_session_scope() -> AsyncIterator[AsyncSession]:
    async with _require(AdminSessionLocal)() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for FastAPI dependencies."""
    async with session_scope() as session:
        yield session
