# haemong_backend/infrastructure/db/migrations/env.py
"""Async alembic environment; migrations run with the admin credentials."""
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from haemong_backend.config import settings
from haemong_backend.infrastructure.db.meta import Base

# entity modules register their tables on Base.metadata
import haemong_backend.domain.user.entities  # noqa: F401
import haemong_backend.domain.chat.entities.bot_settings  # noqa: F401
import haemong_backend.domain.chat.entities.chat_room  # noqa: F401
import haemong_backend.domain.chat.entities.message  # noqa: F401
import haemong_backend.domain.chat.entities.media  # noqa: F401
import haemong_backend.domain.community.entities  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", settings().admin_db_url)
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
