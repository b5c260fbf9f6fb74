"""
Chat room service.

``get_todays_chat_room`` is the hot path: every app open asks for the user's
room for today, often from several concurrent requests. Two layers make the
answer converge on a single row:

* an in-process gate keyed by (user_id, date) that lets concurrent callers in
  this process share one in-flight lookup/creation;
* the ``chat_rooms(user_id, date)`` unique constraint, which turns a
  cross-process race into a duplicate-key error that is resolved by re-reading
  the winning row.

The gate is an optimisation only; correctness rests on the constraint.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import AsyncContextManager, Awaitable, Callable, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.chat.entities.bot_settings import (
    BotSettings,
    DEFAULT_BOT_GENDER,
    DEFAULT_BOT_STYLE,
    FALLBACK_BOT_GENDER,
    FALLBACK_BOT_STYLE,
)
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.repo import ChatRoomRepository
from haemong_backend.domain.errors import ConflictError, ForbiddenError, NotFoundError
from haemong_backend.infrastructure.db.bootstrap import admin_session_scope, session_scope
from haemong_backend.infrastructure.db.errors import is_duplicate_key_error

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]
GateKey = Tuple[UUID, date]
RoomCreatedListener = Callable[[ChatRoom, AsyncSession], Awaitable[object]]

DEFAULT_MAX_RETRIES = 3
DUPLICATE_SETTLE_DELAY = 0.05
BASE_BACKOFF = 0.1


class ChatRoomCreationError(RuntimeError):
    """Raised when today's room could be neither found nor created."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed to create chat room after {attempts} attempts: {last_error}")


class BotSettingsNotFoundError(NotFoundError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_title(day: date) -> str:
    return f"{day.isoformat()} 꿈 해몽"


class ChatRoomService:
    def __init__(
        self,
        room_repo: ChatRoomRepository,
        session_factory: SessionFactory = session_scope,
        admin_session_factory: SessionFactory = admin_session_scope,
        clock: Callable[[], datetime] = _utc_now,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._repo = room_repo
        self._session_factory = session_factory
        self._admin_session_factory = admin_session_factory
        self._clock = clock
        self._max_retries = max_retries
        self._sleep = sleep
        self._inflight: Dict[GateKey, asyncio.Task] = {}
        self._created_listeners: List[RoomCreatedListener] = []

    def add_room_created_listener(self, listener: RoomCreatedListener) -> None:
        """Run *listener* inside the gated creation of a new daily room."""
        self._created_listeners.append(listener)

    def today(self) -> date:
        return self._clock().date()

    # ─────────────────────── daily acquisition ─────────────────────── #

    async def get_todays_chat_room(self, user_id: UUID) -> ChatRoom:
        """Return the user's room for today, creating it at most once."""
        key: GateKey = (user_id, self.today())
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._find_or_create(user_id, key[1]))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        else:
            logger.debug(f"Joining in-flight chat room acquisition for {user_id} on {key[1]}")
        # shielded so one caller's cancellation does not cancel the others
        return await asyncio.shield(task)

    def _release(self, key: GateKey, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Chat room acquisition for {key} failed: {task.exception()}")

    def inflight_count(self) -> int:
        return len(self._inflight)

    async def _find_or_create(self, user_id: UUID, day: date) -> ChatRoom:
        async with self._session_factory() as session:
            room = await self._repo.find_by_user_and_date(user_id, day, session)
        if room is not None:
            return room
        return await self._create_with_retry(user_id, day)

    async def _create_with_retry(self, user_id: UUID, day: date) -> ChatRoom:
        last_error: Optional[BaseException] = None

        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._session_factory() as session:
                    room = await self._insert_room(user_id, day, session)
                    await self._notify_created(room, session)
                logger.info(f"Created chat room {room.id} for user {user_id} on {day} (attempt {attempt})")
                return room
            except BotSettingsNotFoundError:
                raise
            except Exception as exc:
                last_error = exc
                if is_duplicate_key_error(exc):
                    logger.info(f"Duplicate chat room for {user_id} on {day}; reading the existing row")
                    await self._sleep(DUPLICATE_SETTLE_DELAY)
                    existing = await self._find_existing(user_id, day)
                    if existing is not None:
                        return existing
                else:
                    logger.warning(f"Chat room creation attempt {attempt}/{self._max_retries} failed: {exc}")

            if attempt < self._max_retries:
                await self._sleep(BASE_BACKOFF * 2 ** (attempt - 1))

        logger.error(f"Giving up creating chat room for {user_id} on {day}: {last_error}")
        raise ChatRoomCreationError(self._max_retries, last_error)

    async def _notify_created(self, room: ChatRoom, session: AsyncSession) -> None:
        for listener in self._created_listeners:
            try:
                await listener(room, session)
            except Exception as exc:
                # the room exists; callers can still initialise it themselves
                await session.rollback()
                logger.error(f"Room-created listener failed for room {room.id}: {exc}", exc_info=exc)

    async def _find_existing(self, user_id: UUID, day: date) -> Optional[ChatRoom]:
        """Re-read after a duplicate: normal credentials first, then admin."""
        async with self._session_factory() as session:
            room = await self._repo.find_by_user_and_date(user_id, day, session)
            if room is not None:
                return room

        async with self._admin_session_factory() as session:
            room = await self._repo.find_by_user_and_date(user_id, day, session, include_inactive=True)
            if room is None:
                return None
            if not room.is_active:
                # today's room was soft-deleted; the constraint still holds the slot
                await self._repo.set_active(room.id, True, session)
                room = await self._repo.get_by_id(room.id, session)
            logger.info(f"Found chat room {room.id} with admin credentials")
            return room

    async def _insert_room(
        self,
        user_id: UUID,
        day: date,
        session: AsyncSession,
        title: Optional[str] = None,
        gender: Optional[str] = None,
        style: Optional[str] = None,
    ) -> ChatRoom:
        bot_settings = await self._resolve_bot_settings(
            gender or DEFAULT_BOT_GENDER.value,
            style or DEFAULT_BOT_STYLE.value,
            session,
        )
        room = ChatRoom(
            id=uuid4(),
            user_id=user_id,
            title=title or default_title(day),
            date=day,
            bot_settings_id=bot_settings.id,
            is_active=True,
        )
        return await self._repo.create(room, session)

    async def _resolve_bot_settings(self, gender: str, style: str, session: AsyncSession) -> BotSettings:
        row = await self._repo.find_bot_settings(gender, style, session)
        if row is not None:
            return row
        logger.warning(f"Bot settings {gender}/{style} missing, falling back to default")
        row = await self._repo.find_bot_settings(FALLBACK_BOT_GENDER.value, FALLBACK_BOT_STYLE.value, session)
        if row is None:
            raise BotSettingsNotFoundError("봇 설정을 찾을 수 없습니다.")
        return row

    # ───────────────────────── room management ─────────────────────── #

    async def create_chat_room(
        self,
        user_id: UUID,
        session: AsyncSession,
        title: Optional[str] = None,
        gender: Optional[str] = None,
        style: Optional[str] = None,
    ) -> ChatRoom:
        day = self.today()
        if await self._repo.find_by_user_and_date(user_id, day, session) is not None:
            raise ConflictError("오늘의 채팅방이 이미 존재합니다.")
        try:
            return await self._insert_room(user_id, day, session, title=title, gender=gender, style=style)
        except IntegrityError as exc:
            if is_duplicate_key_error(exc):
                raise ConflictError("오늘의 채팅방이 이미 존재합니다.")
            raise

    async def find_chat_room_by_id(self, room_id: UUID, session: AsyncSession) -> ChatRoom:
        room = await self._repo.get_by_id(room_id, session)
        if room is None or not room.is_active:
            raise NotFoundError("채팅방을 찾을 수 없습니다.")
        return room

    async def get_owned_chat_room(self, user_id: UUID, room_id: UUID, session: AsyncSession) -> ChatRoom:
        room = await self.find_chat_room_by_id(room_id, session)
        if room.user_id != user_id:
            raise ForbiddenError("채팅방에 접근할 권한이 없습니다.")
        return room

    async def get_user_chat_rooms(self, user_id: UUID, session: AsyncSession, limit: int = 50) -> List[ChatRoom]:
        return await self._repo.list_by_user(user_id, limit, session)

    async def update_chat_room_title(self, user_id: UUID, room_id: UUID, title: str, session: AsyncSession) -> ChatRoom:
        await self.get_owned_chat_room(user_id, room_id, session)
        return await self._repo.update_title(room_id, title, session)

    async def update_bot_settings(
        self,
        user_id: UUID,
        room_id: UUID,
        gender: str,
        style: str,
        session: AsyncSession,
    ) -> ChatRoom:
        await self.get_owned_chat_room(user_id, room_id, session)
        row = await self._repo.find_bot_settings(gender, style, session)
        if row is None:
            raise BotSettingsNotFoundError("봇 설정을 찾을 수 없습니다.")
        return await self._repo.update_bot_settings(room_id, row.id, session)

    async def delete_chat_room(self, user_id: UUID, room_id: UUID, session: AsyncSession) -> None:
        await self.get_owned_chat_room(user_id, room_id, session)
        await self._repo.set_active(room_id, False, session)
