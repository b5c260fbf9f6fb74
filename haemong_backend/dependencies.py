# haemong_backend/dependencies.py

"""
Centralised FastAPI dependency providers.

Lifetimes
---------
* module-level singletons → created once at import time
* request-scoped objects  → yielded by functions that FastAPI wraps
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from haemong_backend.config import settings
from haemong_backend.context.chat import ChatContextBuilder
from haemong_backend.domain.errors import AuthenticationError
from haemong_backend.infrastructure.auth.apple_oauth import AppleOAuthClient
from haemong_backend.infrastructure.auth.google_oauth import GoogleOAuthClient
from haemong_backend.infrastructure.auth.passwords import BcryptPasswordHasher
from haemong_backend.infrastructure.auth.tokens import TokenService
from haemong_backend.infrastructure.db.bootstrap import get_session as get_db_session
from haemong_backend.infrastructure.image.openai_image_provider import ImageProviderChain, OpenAIImageProvider
from haemong_backend.infrastructure.implementations.chat.rds_chat_room_repository import RDSChatRoomRepository
from haemong_backend.infrastructure.implementations.chat.rds_message_repository import (
    RDSBotPersonalityRepository,
    RDSMediaRepository,
    RDSMessageRepository,
)
from haemong_backend.infrastructure.implementations.community.rds_community_repository import RDSCommunityRepository
from haemong_backend.infrastructure.implementations.user.rds_user_repository import RDSUserRepository
from haemong_backend.infrastructure.llm.openai_llm import OpenAILLM
from haemong_backend.infrastructure.object_storage.supabase_storage_repository import SupabaseStorageRepository
from haemong_backend.infrastructure.video.replicate_provider import (
    ReplicateClient,
    StaticImageVideoProvider,
    VideoProviderChain,
    hunyuan_provider,
    zeroscope_provider,
)
from haemong_backend.services.auth.nickname import NicknameService
from haemong_backend.services.auth.service import AuthService
from haemong_backend.services.chat.ai_service import AiService
from haemong_backend.services.chat.bot_personality_service import BotPersonalityService
from haemong_backend.services.chat.chat_room_service import ChatRoomService
from haemong_backend.services.chat.message_service import MessageService
from haemong_backend.services.community.comment_service import CommentService
from haemong_backend.services.community.service import CommunityService
from haemong_backend.services.media.image_service import ImageService
from haemong_backend.services.media.video_service import VideoService

# ────────────────────────── singletons ─────────────────────────── #

_cfg = settings()

# repositories
_user_repo = RDSUserRepository()
_room_repo = RDSChatRoomRepository()
_message_repo = RDSMessageRepository()
_media_repo = RDSMediaRepository()
_personality_repo = RDSBotPersonalityRepository()
_community_repo = RDSCommunityRepository()

# external adapters
_llm = OpenAILLM(api_key=_cfg.openai_api_key, model=_cfg.openai_model)
_openai_client = AsyncOpenAI(api_key=_cfg.openai_api_key)
_image_chain = ImageProviderChain([
    OpenAIImageProvider(_openai_client, model="dall-e-3"),
    OpenAIImageProvider(_openai_client, model="dall-e-2"),
])
_video_providers = []
if _cfg.replicate_api_token:
    _replicate = ReplicateClient(
        _cfg.replicate_api_token,
        poll_interval=_cfg.replicate_poll_interval,
        timeout=_cfg.replicate_timeout,
    )
    _video_providers += [hunyuan_provider(_replicate), zeroscope_provider(_replicate)]
_video_providers.append(StaticImageVideoProvider(OpenAIImageProvider(_openai_client, model="dall-e-3")))
_video_chain = VideoProviderChain(_video_providers)

_storage = SupabaseStorageRepository(_cfg)
_google = GoogleOAuthClient(_cfg.google_client_id, _cfg.google_client_secret, _cfg.google_redirect_uri)
_apple = AppleOAuthClient(
    _cfg.apple_client_id,
    _cfg.apple_team_id,
    _cfg.apple_key_id,
    _cfg.apple_private_key_path,
    _cfg.apple_redirect_uri,
)
_tokens = TokenService(
    access_secret=_cfg.jwt_secret,
    refresh_secret=_cfg.jwt_refresh_secret,
    access_ttl=_cfg.access_token_ttl,
    refresh_ttl=_cfg.refresh_token_ttl,
)

# services
_context_builder = ChatContextBuilder()
_nickname_service = NicknameService(_user_repo)
_auth_service = AuthService(_user_repo, _nickname_service, BcryptPasswordHasher(), _tokens)
_chat_room_service = ChatRoomService(_room_repo)
_ai_service = AiService(_llm, _context_builder)
_message_service = MessageService(_message_repo, _chat_room_service, _ai_service, _auth_service, _context_builder)
_chat_room_service.add_room_created_listener(_message_service.initialize_chat_room)
_personality_service = BotPersonalityService(_personality_repo)
_image_service = ImageService(
    _chat_room_service,
    _message_service,
    _auth_service,
    _ai_service,
    _media_repo,
    _image_chain,
    _storage,
    _context_builder,
    enabled=_cfg.enable_image_generation,
)
_video_service = VideoService(
    _chat_room_service,
    _message_service,
    _auth_service,
    _ai_service,
    _media_repo,
    _video_chain,
    _context_builder,
    enabled=_cfg.enable_video_generation,
)
_community_service = CommunityService(_community_repo, _room_repo, _message_repo, _media_repo, _auth_service)
_comment_service = CommentService(_community_repo)

# ─────────────────────── DI provider helpers ───────────────────── #

def get_auth_service() -> AuthService:
    return _auth_service

def get_nickname_service() -> NicknameService:
    return _nickname_service

def get_chat_room_service() -> ChatRoomService:
    """Return the process-wide ChatRoomService (owns the daily-room gate)."""
    return _chat_room_service

def get_message_service() -> MessageService:
    return _message_service

def get_bot_personality_service() -> BotPersonalityService:
    return _personality_service

def get_image_service() -> ImageService:
    return _image_service

def get_video_service() -> VideoService:
    return _video_service

def get_community_service() -> CommunityService:
    return _community_service

def get_comment_service() -> CommentService:
    return _comment_service

def get_storage_service() -> SupabaseStorageRepository:
    return _storage

def get_google_oauth() -> GoogleOAuthClient:
    return _google

def get_apple_oauth() -> AppleOAuthClient:
    return _apple


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped database session (async)."""
    async for session in get_db_session():
        yield session

# ───────────────────────── auth helpers ───────────────────────── #
_security = HTTPBearer()
_optional_security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    token: HTTPAuthorizationCredentials = Depends(_security),
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> UUID:
    """Return the internal User.id for a valid access token; 401 otherwise."""
    try:
        user = await auth_service.validate_access_token(token.credentials, session)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)
    return user.id


async def get_optional_user_id(
    token: Optional[HTTPAuthorizationCredentials] = Depends(_optional_security),
    session: AsyncSession = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[UUID]:
    """Like ``get_current_user_id`` but anonymous callers get ``None``."""
    if token is None:
        return None
    try:
        user = await auth_service.validate_access_token(token.credentials, session)
    except AuthenticationError:
        return None
    return user.id
