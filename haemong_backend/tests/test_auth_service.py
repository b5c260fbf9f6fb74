"""Auth service: password login, OAuth accounts, tokens, premium expiry, nicknames."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from haemong_backend.domain.errors import AuthenticationError, ConflictError
from haemong_backend.domain.user.entities import AuthProvider, SubscriptionStatus, User
from haemong_backend.infrastructure.auth.tokens import TokenService
from haemong_backend.services.auth.nickname import NicknameGenerationError, NicknameService
from haemong_backend.services.auth.service import AuthService

NOW = datetime(2026, 3, 14, 12, tzinfo=timezone.utc)


def make_user(**overrides):
    fields = dict(
        id=uuid4(),
        email="dreamer@example.com",
        nickname="꿈꾸는1234",
        password_hash="stored-hash",
        provider=AuthProvider.EMAIL.value,
        subscription_status=SubscriptionStatus.FREE.value,
        premium_expires_at=None,
        is_active=True,
    )
    fields.update(overrides)
    return User(**fields)


@pytest_asyncio.fixture
async def user_repo():
    repo = AsyncMock()
    repo.get_by_email.return_value = None
    repo.get_by_nickname.return_value = None
    repo.get_by_provider.return_value = None
    repo.create.side_effect = lambda user, session: user
    return repo


@pytest_asyncio.fixture
async def hasher():
    hasher = MagicMock()
    hasher.hash.return_value = "hashed"
    hasher.verify.return_value = True
    return hasher


@pytest_asyncio.fixture
async def tokens():
    return TokenService(access_secret="access-secret", refresh_secret="refresh-secret")


@pytest_asyncio.fixture
async def auth_service(user_repo, hasher, tokens):
    return AuthService(user_repo, NicknameService(user_repo), hasher, tokens, clock=lambda: NOW)


class TestLogin:

    @pytest.mark.asyncio
    async def test_password_login_issues_tokens(self, auth_service, user_repo, tokens, session):
        user = make_user()
        user_repo.get_by_email.return_value = user

        result = await auth_service.login(user.email, "pw", session)

        assert result["user"] is user
        assert tokens.decode_access(result["access_token"])["sub"] == str(user.id)
        assert tokens.decode_refresh(result["refresh_token"])["email"] == user.email

    @pytest.mark.asyncio
    async def test_oauth_account_rejected_without_hash_compare(self, auth_service, user_repo, hasher, session):
        user_repo.get_by_email.return_value = make_user(provider="google", password_hash=None)

        with pytest.raises(AuthenticationError) as exc_info:
            await auth_service.login("dreamer@example.com", "pw", session)

        assert "google" in exc_info.value.message
        hasher.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_email_is_invalid_credentials(self, auth_service, session):
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await auth_service.login("nobody@example.com", "pw", session)

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service, user_repo, hasher, session):
        user_repo.get_by_email.return_value = make_user()
        hasher.verify.return_value = False

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await auth_service.login("dreamer@example.com", "bad", session)

    @pytest.mark.asyncio
    async def test_access_token_is_not_a_refresh_token(self, auth_service, user_repo, session):
        user = make_user()
        user_repo.get_by_email.return_value = user
        user_repo.get_by_id.return_value = user
        result = await auth_service.login(user.email, "pw", session)

        with pytest.raises(AuthenticationError):
            await auth_service.refresh(result["access_token"], session)
        refreshed = await auth_service.refresh(result["refresh_token"], session)
        assert refreshed["user"] is user


class TestRegistration:

    @pytest.mark.asyncio
    async def test_existing_email_conflicts(self, auth_service, user_repo, session):
        user_repo.get_by_email.return_value = make_user()
        with pytest.raises(ConflictError):
            await auth_service.register("dreamer@example.com", "secret1", session)

    @pytest.mark.asyncio
    async def test_generates_nickname_when_missing(self, auth_service, user_repo, hasher, session):
        result = await auth_service.register("new@example.com", "secret1", session)

        created = user_repo.create.call_args.args[0]
        assert created.password_hash == "hashed"
        assert created.provider == AuthProvider.EMAIL.value
        assert created.nickname
        assert result["user"] is created

    @pytest.mark.asyncio
    async def test_oauth_email_registered_with_other_provider(self, auth_service, user_repo, session):
        user_repo.get_by_email.return_value = make_user(provider="apple")
        with pytest.raises(ConflictError):
            await auth_service.oauth_login("google", "g-123", "dreamer@example.com", session)

    @pytest.mark.asyncio
    async def test_oauth_creates_user(self, auth_service, user_repo, session):
        result = await auth_service.oauth_login("google", "g-123", "new@example.com", session, nickname="별빛")

        created = user_repo.create.call_args.args[0]
        assert created.provider_id == "g-123"
        assert created.nickname == "별빛"
        assert created.password_hash is None
        assert result["user"] is created


class TestPremium:

    @pytest.mark.asyncio
    async def test_active_premium(self, auth_service, user_repo, session):
        user_repo.get_by_id.return_value = make_user(
            subscription_status="premium", premium_expires_at=NOW + timedelta(days=3)
        )
        assert await auth_service.is_premium_user(uuid4(), session) is True
        user_repo.update_subscription.assert_not_called()

    @pytest.mark.asyncio
    async def test_premium_without_expiry(self, auth_service, user_repo, session):
        user_repo.get_by_id.return_value = make_user(subscription_status="premium")
        assert await auth_service.is_premium_user(uuid4(), session) is True

    @pytest.mark.asyncio
    async def test_expired_premium_is_downgraded(self, auth_service, user_repo, session):
        expired_at = NOW - timedelta(minutes=1)
        user = make_user(subscription_status="premium", premium_expires_at=expired_at)
        user_repo.get_by_id.return_value = user

        assert await auth_service.is_premium_user(user.id, session) is False
        user_repo.update_subscription.assert_awaited_once_with(
            user.id, SubscriptionStatus.EXPIRED.value, expired_at, session
        )

    @pytest.mark.asyncio
    async def test_free_user(self, auth_service, user_repo, session):
        user_repo.get_by_id.return_value = make_user()
        assert await auth_service.is_premium_user(uuid4(), session) is False


class TestNicknames:

    @pytest.mark.asyncio
    async def test_available_when_no_row(self, user_repo, session):
        assert await NicknameService(user_repo).check_nickname_availability("달빛의1111", session) is True

    @pytest.mark.asyncio
    async def test_taken_when_row_exists(self, user_repo, session):
        user_repo.get_by_nickname.return_value = make_user()
        assert await NicknameService(user_repo).check_nickname_availability("꿈꾸는1234", session) is False

    @pytest.mark.asyncio
    async def test_query_errors_propagate(self, user_repo, session):
        user_repo.get_by_nickname.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        with pytest.raises(OperationalError):
            await NicknameService(user_repo).check_nickname_availability("달빛의1111", session)

    @pytest.mark.asyncio
    async def test_generation_gives_up(self, user_repo, session):
        user_repo.get_by_nickname.return_value = make_user()
        with pytest.raises(NicknameGenerationError):
            await NicknameService(user_repo).generate_unique_nickname(session)
        assert user_repo.get_by_nickname.await_count == 50

    @pytest.mark.asyncio
    async def test_update_to_taken_nickname_conflicts(self, auth_service, user_repo, session):
        user_repo.get_by_id.return_value = make_user(nickname="old")
        user_repo.get_by_nickname.return_value = make_user(nickname="new")
        with pytest.raises(ConflictError):
            await auth_service.update_nickname(uuid4(), "new", session)

    @pytest.mark.asyncio
    async def test_update_for_missing_user_is_unauthorized(self, auth_service, user_repo, session):
        user_repo.get_by_id.return_value = None
        with pytest.raises(AuthenticationError):
            await auth_service.update_nickname(uuid4(), "new", session)
