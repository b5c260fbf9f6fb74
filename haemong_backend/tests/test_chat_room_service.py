"""Daily chat-room acquisition: one room per user per day, even under races."""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from haemong_backend.domain.chat.entities.bot_settings import BotSettings
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.errors import ConflictError, ForbiddenError, NotFoundError
from haemong_backend.services.chat.chat_room_service import (
    BotSettingsNotFoundError,
    ChatRoomCreationError,
    ChatRoomService,
    default_title,
)


class UniqueViolation(Exception):
    sqlstate = "23505"


def duplicate_error():
    return IntegrityError("INSERT INTO chat_rooms ...", {}, UniqueViolation("duplicate key value"))


class FakeRoomRepo:
    """In-memory chat_rooms table with the (user_id, date) constraint."""

    def __init__(self):
        self.rooms = {}
        self.create_calls = 0
        self.fail_with = None           # raised by every create
        self.race_winner_active = None  # another writer inserts first
        self.hidden_from_primary = False
        self.bot_settings = {
            ("female", "eastern"): BotSettings(id=2, gender="female", style="eastern"),
            ("male", "eastern"): BotSettings(id=1, gender="male", style="eastern"),
        }

    def _visible(self, room, session, include_inactive):
        if room is None:
            return None
        if self.hidden_from_primary and session.name == "primary":
            return None
        if not include_inactive and not room.is_active:
            return None
        return room

    async def find_by_user_and_date(self, user_id, day, session, include_inactive=False):
        await asyncio.sleep(0)
        return self._visible(self.rooms.get((user_id, day)), session, include_inactive)

    async def create(self, room, session):
        self.create_calls += 1
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        key = (room.user_id, room.date)
        if self.race_winner_active is not None and key not in self.rooms:
            self.rooms[key] = ChatRoom(
                id=uuid4(), user_id=room.user_id, date=room.date, title="winner",
                bot_settings_id=2, is_active=self.race_winner_active,
            )
        if key in self.rooms:
            raise duplicate_error()
        self.rooms[key] = room
        return room

    async def get_by_id(self, room_id, session):
        return next((r for r in self.rooms.values() if r.id == room_id), None)

    async def list_by_user(self, user_id, limit, session):
        return [r for (uid, _), r in self.rooms.items() if uid == user_id and r.is_active][:limit]

    async def update_title(self, room_id, title, session):
        room = await self.get_by_id(room_id, session)
        room.title = title
        return room

    async def update_bot_settings(self, room_id, bot_settings_id, session):
        room = await self.get_by_id(room_id, session)
        room.bot_settings_id = bot_settings_id
        return room

    async def set_active(self, room_id, active, session):
        room = await self.get_by_id(room_id, session)
        room.is_active = active

    async def find_bot_settings(self, gender, style, session):
        return self.bot_settings.get((gender, style))


class Clock:
    def __init__(self, day=date(2026, 3, 14)):
        self.day = day

    def __call__(self):
        return datetime(self.day.year, self.day.month, self.day.day, 12, tzinfo=timezone.utc)


@pytest.fixture
def repo():
    return FakeRoomRepo()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def service(repo, clock, make_session_factory, fast_sleep):
    return ChatRoomService(
        repo,
        session_factory=make_session_factory("primary"),
        admin_session_factory=make_session_factory("admin"),
        clock=clock,
        sleep=fast_sleep,
    )


class TestDailyAcquisition:

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_room(self, service, repo):
        user_id = uuid4()
        rooms = await asyncio.gather(*(service.get_todays_chat_room(user_id) for _ in range(10)))

        assert len({r.id for r in rooms}) == 1
        assert repo.create_calls == 1
        assert len(repo.rooms) == 1
        assert service.inflight_count() == 0

    @pytest.mark.asyncio
    async def test_existing_room_is_returned_without_insert(self, service, repo, clock):
        user_id = uuid4()
        first = await service.get_todays_chat_room(user_id)
        second = await service.get_todays_chat_room(user_id)

        assert first.id == second.id
        assert repo.create_calls == 1

    @pytest.mark.asyncio
    async def test_new_room_uses_default_title_and_persona(self, service, repo, clock):
        room = await service.get_todays_chat_room(uuid4())

        assert room.title == default_title(clock.day) == "2026-03-14 꿈 해몽"
        assert room.date == clock.day
        assert room.bot_settings_id == 2

    @pytest.mark.asyncio
    async def test_missing_default_persona_falls_back(self, service, repo):
        del repo.bot_settings[("female", "eastern")]
        room = await service.get_todays_chat_room(uuid4())
        assert room.bot_settings_id == 1

    @pytest.mark.asyncio
    async def test_no_bot_settings_at_all_is_not_retried(self, service, repo):
        repo.bot_settings.clear()
        with pytest.raises(BotSettingsNotFoundError):
            await service.get_todays_chat_room(uuid4())
        assert repo.create_calls == 0

    @pytest.mark.asyncio
    async def test_different_users_get_different_rooms(self, service, repo):
        a, b = uuid4(), uuid4()
        room_a, room_b = await asyncio.gather(service.get_todays_chat_room(a), service.get_todays_chat_room(b))

        assert room_a.id != room_b.id
        assert repo.create_calls == 2

    @pytest.mark.asyncio
    async def test_different_dates_get_different_rooms(self, service, repo, clock):
        user_id = uuid4()
        first = await service.get_todays_chat_room(user_id)
        clock.day = date(2026, 3, 15)
        second = await service.get_todays_chat_room(user_id)

        assert first.id != second.id
        assert {r.date for r in repo.rooms.values()} == {date(2026, 3, 14), date(2026, 3, 15)}


class TestDuplicateResolution:

    @pytest.mark.asyncio
    async def test_duplicate_returns_existing_row(self, service, repo):
        repo.race_winner_active = True
        room = await service.get_todays_chat_room(uuid4())

        assert room.title == "winner"
        assert repo.create_calls == 1

    @pytest.mark.asyncio
    async def test_duplicate_hidden_from_primary_found_with_admin(self, service, repo):
        repo.race_winner_active = True
        repo.hidden_from_primary = True
        room = await service.get_todays_chat_room(uuid4())

        assert room.title == "winner"

    @pytest.mark.asyncio
    async def test_soft_deleted_room_is_reactivated(self, service, repo):
        repo.race_winner_active = False
        room = await service.get_todays_chat_room(uuid4())

        assert room.title == "winner"
        assert room.is_active is True

    @pytest.mark.asyncio
    async def test_gives_up_after_three_failures(self, service, repo, fast_sleep):
        repo.fail_with = OperationalError("INSERT", {}, Exception("connection reset"))

        with pytest.raises(ChatRoomCreationError) as exc_info:
            await service.get_todays_chat_room(uuid4())

        assert exc_info.value.attempts == 3
        assert "after 3 attempts" in str(exc_info.value)
        assert repo.create_calls == 3
        assert [c.args[0] for c in fast_sleep.await_args_list] == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_gate_is_released_after_failure(self, service, repo):
        user_id = uuid4()
        repo.fail_with = OperationalError("INSERT", {}, Exception("connection reset"))
        with pytest.raises(ChatRoomCreationError):
            await service.get_todays_chat_room(user_id)
        assert service.inflight_count() == 0

        repo.fail_with = None
        room = await service.get_todays_chat_room(user_id)
        assert room.user_id == user_id

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_others(self, service, repo):
        user_id = uuid4()
        first = asyncio.ensure_future(service.get_todays_chat_room(user_id))
        second = asyncio.ensure_future(service.get_todays_chat_room(user_id))
        await asyncio.sleep(0)
        first.cancel()

        room = await second
        assert room.user_id == user_id
        assert repo.create_calls == 1


class TestRoomManagement:

    @pytest.mark.asyncio
    async def test_create_when_today_exists_conflicts(self, service, session):
        user_id = uuid4()
        await service.get_todays_chat_room(user_id)
        with pytest.raises(ConflictError):
            await service.create_chat_room(user_id, session)

    @pytest.mark.asyncio
    async def test_other_users_room_is_forbidden(self, service, session):
        room = await service.get_todays_chat_room(uuid4())
        with pytest.raises(ForbiddenError):
            await service.get_owned_chat_room(uuid4(), room.id, session)

    @pytest.mark.asyncio
    async def test_deleted_room_is_not_found(self, service, session):
        user_id = uuid4()
        room = await service.get_todays_chat_room(user_id)
        await service.delete_chat_room(user_id, room.id, session)
        with pytest.raises(NotFoundError):
            await service.find_chat_room_by_id(room.id, session)

    @pytest.mark.asyncio
    async def test_update_bot_settings_requires_known_pair(self, service, session):
        user_id = uuid4()
        room = await service.get_todays_chat_room(user_id)
        with pytest.raises(BotSettingsNotFoundError):
            await service.update_bot_settings(user_id, room.id, "male", "western", session)

        updated = await service.update_bot_settings(user_id, room.id, "male", "eastern", session)
        assert updated.bot_settings_id == 1


class TestRoomCreatedListener:

    @pytest.mark.asyncio
    async def test_listener_runs_once_for_concurrent_requests(self, service, repo):
        listener = AsyncMock()
        service.add_room_created_listener(listener)
        user_id = uuid4()

        rooms = await asyncio.gather(*(service.get_todays_chat_room(user_id) for _ in range(10)))

        listener.assert_awaited_once()
        assert listener.call_args.args[0] is rooms[0]
        assert listener.call_args.args[1].name == "primary"

    @pytest.mark.asyncio
    async def test_existing_room_does_not_notify(self, service, repo, clock):
        user_id = uuid4()
        await service.get_todays_chat_room(user_id)
        listener = AsyncMock()
        service.add_room_created_listener(listener)

        await service.get_todays_chat_room(user_id)

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_listener_still_returns_room(self, service, repo):
        service.add_room_created_listener(AsyncMock(side_effect=RuntimeError("welcome failed")))

        room = await service.get_todays_chat_room(uuid4())

        assert room is not None
        assert repo.create_calls == 1
        assert len(repo.rooms) == 1
