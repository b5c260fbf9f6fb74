"""Account registration, login and profile management."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.domain.errors import AuthenticationError, ConflictError
from haemong_backend.domain.user.entities import AuthProvider, SubscriptionStatus, User
from haemong_backend.domain.user.repo import UserRepository
from haemong_backend.infrastructure.auth.passwords import BcryptPasswordHasher
from haemong_backend.infrastructure.auth.tokens import TokenService
from haemong_backend.infrastructure.db.errors import is_duplicate_key_error
from .nickname import NicknameService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    def __init__(
        self,
        user_repo: UserRepository,
        nickname_service: NicknameService,
        password_hasher: BcryptPasswordHasher,
        token_service: TokenService,
        clock=lambda: datetime.now(timezone.utc),
    ):
        self._user_repo = user_repo
        self._nicknames = nickname_service
        self._hasher = password_hasher
        self._tokens = token_service
        self._clock = clock

    # ───────────────────────── sign-up / sign-in ───────────────────── #

    async def register(
        self,
        email: str,
        password: str,
        session: AsyncSession,
        nickname: Optional[str] = None,
    ) -> Dict[str, Any]:
        if await self._user_repo.get_by_email(email, session) is not None:
            raise ConflictError("Email already exists")

        if nickname:
            if not await self._nicknames.check_nickname_availability(nickname, session):
                raise ConflictError("Nickname already exists")
        else:
            nickname = await self._nicknames.generate_unique_nickname(session)

        user = User(
            id=uuid4(),
            email=email,
            nickname=nickname,
            password_hash=self._hasher.hash(password),
            provider=AuthProvider.EMAIL.value,
            subscription_status=SubscriptionStatus.FREE.value,
            is_active=True,
        )
        user = await self._create_user(user, session)
        logger.info(f"[auth] registered user={user.id}")
        return self._auth_response(user)

    async def login(self, email: str, password: str, session: AsyncSession) -> Dict[str, Any]:
        user = await self._user_repo.get_by_email(email, session)
        if user is None or not user.is_active:
            raise AuthenticationError(INVALID_CREDENTIALS)

        # OAuth accounts never compare a password hash
        if user.provider != AuthProvider.EMAIL.value:
            raise AuthenticationError(
                f"This account was registered with {user.provider}. Please use {user.provider} login."
            )
        if not user.password_hash:
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not self._hasher.verify(password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info(f"[auth] login user={user.id}")
        return self._auth_response(user)

    async def oauth_login(
        self,
        provider: str,
        provider_id: str,
        email: Optional[str],
        session: AsyncSession,
        nickname: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        user = await self._user_repo.get_by_provider(provider, provider_id, session)
        if user is None:
            if not email:
                raise AuthenticationError(f"{provider} did not provide an email address")
            existing = await self._user_repo.get_by_email(email, session)
            if existing is not None:
                if existing.provider != provider:
                    raise ConflictError(
                        f"Email already registered with {existing.provider}. Please use {existing.provider} login."
                    )
                user = existing
            else:
                if not nickname or not await self._nicknames.check_nickname_availability(nickname, session):
                    nickname = await self._nicknames.generate_unique_nickname(session)
                user = await self._create_user(
                    User(
                        id=uuid4(),
                        email=email,
                        nickname=nickname,
                        provider=provider,
                        provider_id=provider_id,
                        profile_image_url=profile_image_url,
                        subscription_status=SubscriptionStatus.FREE.value,
                        is_active=True,
                    ),
                    session,
                )
                logger.info(f"[auth] created {provider} user={user.id}")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return self._auth_response(user)

    async def refresh(self, refresh_token: str, session: AsyncSession) -> Dict[str, Any]:
        payload = self._tokens.decode_refresh(refresh_token)
        user = await self._get_active_user(payload.get("sub"), session)
        return self._auth_response(user)

    async def validate_access_token(self, token: str, session: AsyncSession) -> User:
        payload = self._tokens.decode_access(token)
        return await self._get_active_user(payload.get("sub"), session)

    def generate_tokens(self, user: User) -> Dict[str, str]:
        return self._tokens.issue_pair(str(user.id), user.email)

    # ───────────────────────── subscription ────────────────────────── #

    async def is_premium_user(self, user_id: UUID, session: AsyncSession) -> bool:
        user = await self._user_repo.get_by_id(user_id, session)
        if user is None or user.subscription_status != SubscriptionStatus.PREMIUM.value:
            return False
        if user.premium_expires_at is None:
            return True

        expires = user.premium_expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        if expires > self._clock():
            return True

        logger.info(f"[auth] premium expired for user={user_id}")
        await self._user_repo.update_subscription(
            user_id, SubscriptionStatus.EXPIRED.value, user.premium_expires_at, session
        )
        return False

    async def update_user_subscription_status(
        self,
        user_id: UUID,
        status: SubscriptionStatus,
        session: AsyncSession,
        expires_at: Optional[datetime] = None,
    ) -> User:
        user = await self._user_repo.update_subscription(user_id, status.value, expires_at, session)
        if user is None:
            raise AuthenticationError("User not found")
        return user

    # ─────────────────────────── profile ───────────────────────────── #

    async def update_nickname(self, user_id: UUID, nickname: str, session: AsyncSession) -> User:
        user = await self._user_repo.get_by_id(user_id, session)
        if user is None:
            raise AuthenticationError("User not found")
        if user.nickname == nickname:
            return user
        if not await self._nicknames.check_nickname_availability(nickname, session):
            raise ConflictError("Nickname already exists")
        try:
            return await self._user_repo.update_nickname(user_id, nickname, session)
        except IntegrityError as exc:
            await session.rollback()
            if is_duplicate_key_error(exc):
                raise ConflictError("Nickname already exists")
            raise

    async def get_user_profile(self, user_id: UUID, session: AsyncSession) -> Dict[str, Any]:
        user = await self._get_active_user(str(user_id), session)
        now = self._clock()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        stats = await self._user_repo.get_activity_stats(user_id, month_start, session)
        return {
            "user": user,
            "stats": {
                **stats,
                "is_premium": await self.is_premium_user(user_id, session),
                "joined_at": user.created_at,
            },
        }

    async def delete_account(self, user_id: UUID, session: AsyncSession) -> None:
        await self._user_repo.deactivate(user_id, session)
        logger.info(f"[auth] deactivated user={user_id}")

    # ─────────────────────────── helpers ───────────────────────────── #

    async def _create_user(self, user: User, session: AsyncSession) -> User:
        try:
            return await self._user_repo.create(user, session)
        except IntegrityError as exc:
            if is_duplicate_key_error(exc):
                raise ConflictError("Email or nickname already exists")
            raise

    async def _get_active_user(self, sub: Optional[str], session: AsyncSession) -> User:
        try:
            uid = UUID(str(sub))
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid or expired token")
        user = await self._user_repo.get_by_id(uid, session)
        if user is None or not user.is_active:
            raise AuthenticationError("Unknown user")
        return user

    def _auth_response(self, user: User) -> Dict[str, Any]:
        tokens = self.generate_tokens(user)
        return {"user": user, **tokens}
