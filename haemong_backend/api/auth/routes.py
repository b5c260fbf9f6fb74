# haemong_backend/api/auth/routes.py

from __future__ import annotations

import json
import logging
from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.config import settings
from haemong_backend.dependencies import (
    get_apple_oauth,
    get_auth_service,
    get_current_user_id,
    get_google_oauth,
    get_nickname_service,
    get_session,
)
from haemong_backend.domain.errors import DomainError
from haemong_backend.domain.user.entities import AuthProvider
from haemong_backend.infrastructure.auth.apple_oauth import AppleOAuthClient
from haemong_backend.infrastructure.auth.google_oauth import GoogleOAuthClient
from haemong_backend.services.auth.nickname import NicknameService
from haemong_backend.services.auth.service import AuthService
from .schemas import (
    AuthResponse,
    GeneratedNickname,
    LoginRequest,
    MessageResponse,
    MobileTokenRequest,
    NicknameAvailability,
    NicknameUpdate,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    UserRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _frontend_redirect(**params: str) -> RedirectResponse:
    url = f"{settings().frontend_url.rstrip('/')}/auth/callback?{urlencode(params)}"
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


# ---------------------------------------------------------------------------
# Email / password
# ---------------------------------------------------------------------------

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    logger.info(f"[auth] register: email={body.email}")
    result = await auth_service.register(body.email, body.password, session, nickname=body.nickname)
    return AuthResponse.model_validate(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.login(body.email, body.password, session)
    return AuthResponse.model_validate(result)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    body: RefreshRequest,
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.refresh(body.refresh_token, session)
    return AuthResponse.model_validate(result)


# ---------------------------------------------------------------------------
# Google – web auth-code flow and the mobile id-token endpoint
# ---------------------------------------------------------------------------

@router.get("/google")
async def google_login(
    state: Optional[str] = None,
    google: GoogleOAuthClient = Depends(get_google_oauth),
):
    return RedirectResponse(google.authorization_url(state), status_code=status.HTTP_302_FOUND)


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = None,
    error: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
    google: GoogleOAuthClient = Depends(get_google_oauth),
    auth_service: AuthService = Depends(get_auth_service),
):
    if error or not code:
        logger.warning(f"[auth] google callback without code: error={error}")
        return _frontend_redirect(error=error or "missing_code")
    try:
        claims = await google.exchange_code(code)
        result = await auth_service.oauth_login(
            AuthProvider.GOOGLE.value,
            claims["sub"],
            claims.get("email"),
            session,
            profile_image_url=claims.get("picture"),
        )
    except DomainError as e:
        logger.warning(f"[auth] google login failed: {e.message}")
        return _frontend_redirect(error=e.message)
    return _frontend_redirect(token=result["access_token"], refresh=result["refresh_token"])


@router.post("/google/mobile-token", response_model=AuthResponse)
async def google_mobile_token(
    body: MobileTokenRequest,
    session: AsyncSession = Depends(get_session),
    google: GoogleOAuthClient = Depends(get_google_oauth),
    auth_service: AuthService = Depends(get_auth_service),
):
    claims = await google.verify_id_token(body.id_token)
    result = await auth_service.oauth_login(
        AuthProvider.GOOGLE.value,
        claims["sub"],
        claims.get("email"),
        session,
        profile_image_url=claims.get("picture"),
    )
    return AuthResponse.model_validate(result)


# ---------------------------------------------------------------------------
# Apple – form_post callback (query string accepted too)
# ---------------------------------------------------------------------------

@router.get("/apple")
async def apple_login(
    state: Optional[str] = None,
    apple: AppleOAuthClient = Depends(get_apple_oauth),
):
    return RedirectResponse(apple.authorization_url(state), status_code=status.HTTP_302_FOUND)


@router.api_route("/apple/callback", methods=["GET", "POST"])
async def apple_callback(
    request: Request,
    session: AsyncSession = Depends(get_session),
    apple: AppleOAuthClient = Depends(get_apple_oauth),
    auth_service: AuthService = Depends(get_auth_service),
):
    params = dict(request.query_params)
    if request.method == "POST":
        params.update(await request.form())

    code = params.get("code")
    if params.get("error") or not code:
        logger.warning(f"[auth] apple callback without code: error={params.get('error')}")
        return _frontend_redirect(error=params.get("error") or "missing_code")

    # Apple only sends the user's name on the very first authorization
    nickname = None
    if params.get("user"):
        try:
            name = json.loads(params["user"]).get("name") or {}
            nickname = "".join(filter(None, [name.get("lastName"), name.get("firstName")])) or None
        except ValueError:
            logger.debug("[auth] apple user payload was not JSON")

    try:
        claims = await apple.exchange_code(code)
        result = await auth_service.oauth_login(
            AuthProvider.APPLE.value,
            claims["sub"],
            claims.get("email"),
            session,
            nickname=nickname,
        )
    except DomainError as e:
        logger.warning(f"[auth] apple login failed: {e.message}")
        return _frontend_redirect(error=e.message)
    return _frontend_redirect(token=result["access_token"], refresh=result["refresh_token"])


# ---------------------------------------------------------------------------
# Profile / account
# ---------------------------------------------------------------------------

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
    user_id: UUID = Depends(get_current_user_id),
):
    profile = await auth_service.get_user_profile(user_id, session)
    return ProfileResponse.model_validate(profile)


@router.get("/check-nickname", response_model=NicknameAvailability)
async def check_nickname(
    nickname: str = Query(..., min_length=2, max_length=20),
    session: AsyncSession = Depends(get_session),
    nickname_service: NicknameService = Depends(get_nickname_service),
):
    available = await nickname_service.check_nickname_availability(nickname, session)
    return NicknameAvailability(nickname=nickname, available=available)


@router.get("/generate-nickname", response_model=GeneratedNickname)
async def generate_nickname(
    session: AsyncSession = Depends(get_session),
    nickname_service: NicknameService = Depends(get_nickname_service),
):
    return GeneratedNickname(nickname=await nickname_service.generate_unique_nickname(session))


@router.post("/logout", response_model=MessageResponse)
async def logout(user_id: UUID = Depends(get_current_user_id)):
    # tokens are stateless; the client discards them
    logger.info(f"[auth] logout user={user_id}")
    return MessageResponse(message="Logged out successfully")


@router.put("/nickname", response_model=UserRead)
async def update_nickname(
    body: NicknameUpdate,
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
    user_id: UUID = Depends(get_current_user_id),
):
    user = await auth_service.update_nickname(user_id, body.nickname, session)
    return UserRead.model_validate(user)


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
    user_id: UUID = Depends(get_current_user_id),
):
    await auth_service.delete_account(user_id, session)
    return MessageResponse(message="Account deleted successfully")
