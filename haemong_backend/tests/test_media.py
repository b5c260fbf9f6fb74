"""Image/video provider chains, storage retries and the media services."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

from haemong_backend.domain.chat.entities.bot_settings import BotSettings
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.entities.message import Message
from haemong_backend.domain.errors import FeatureDisabledError, PremiumRequiredError
from haemong_backend.domain.ports.image_generation import ImageResult
from haemong_backend.domain.ports.object_storage import StoredImage
from haemong_backend.domain.ports.video_generation import VideoResult
from haemong_backend.context.chat import ChatContextBuilder
from haemong_backend.infrastructure.image.openai_image_provider import (
    ImageProviderChain,
    OpenAIImageProvider,
    classify_image_error,
)
from haemong_backend.infrastructure.object_storage.supabase_storage_repository import SupabaseStorageRepository
from haemong_backend.infrastructure.video.replicate_provider import (
    ReplicateClient,
    StaticImageVideoProvider,
    VideoProviderChain,
    extract_output_url,
    hunyuan_provider,
)
from haemong_backend.services.media.image_service import (
    CONTENT_POLICY,
    GENERATION_ERROR,
    IMAGE_MESSAGE,
    NO_DREAM,
    ImageService,
)
from haemong_backend.services.media.video_service import VideoGenerationError, VideoService


def fake_provider(name, result):
    provider = MagicMock()
    provider.name = name
    provider.generate = AsyncMock(return_value=result)
    return provider


class TestImageProviders:

    def test_error_classification(self):
        assert classify_image_error(Exception("Error code: 400 - content_policy_violation")) == "content_policy_violation"
        assert classify_image_error(Exception("rate limited")) == "error"

    @pytest.mark.asyncio
    async def test_chain_stops_at_first_success(self):
        first = fake_provider("dall-e-3", ImageResult(url=None, model="dall-e-3", error="error"))
        second = fake_provider("dall-e-2", ImageResult(url="https://img/2.png", model="dall-e-2"))
        third = fake_provider("never", ImageResult(url="https://img/3.png", model="never"))

        result = await ImageProviderChain([first, second, third]).generate("prompt")

        assert result.url == "https://img/2.png"
        assert result.model == "dall-e-2"
        third.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_chain_all_failing(self):
        providers = [
            fake_provider("a", ImageResult(url=None, model="a", error="error")),
            fake_provider("b", ImageResult(url=None, model="b", error="content_policy_violation")),
        ]
        result = await ImageProviderChain(providers).generate("prompt")

        assert result.url is None
        assert not result.ok
        assert result.error == "content_policy_violation"

    @pytest.mark.asyncio
    async def test_openai_provider_maps_exceptions(self):
        client = MagicMock()
        client.images.generate = AsyncMock(side_effect=Exception("content_policy_violation: rejected"))
        result = await OpenAIImageProvider(client, model="dall-e-3").generate("prompt")

        assert result.error == "content_policy_violation"
        assert result.url is None

    @pytest.mark.asyncio
    async def test_dalle2_prompt_and_size_are_clamped(self):
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(url="https://img")]))
        result = await OpenAIImageProvider(client, model="dall-e-2").generate("x" * 1500, size="1024x1792")

        kwargs = client.images.generate.call_args.kwargs
        assert len(kwargs["prompt"]) == 1000
        assert kwargs["size"] == "1024x1024"
        assert "style" not in kwargs
        assert result.ok


class TestVideoProviders:

    def test_extract_output_url(self):
        assert extract_output_url("https://v/1.mp4") == "https://v/1.mp4"
        assert extract_output_url(["https://v/2.mp4", "https://v/3.mp4"]) == "https://v/2.mp4"
        assert extract_output_url([]) is None
        assert extract_output_url({"video": "x"}) is None

    @pytest.mark.asyncio
    async def test_chain_falls_through_to_static_image(self):
        hunyuan = fake_provider("hunyuan-video", VideoResult(url=None, model="hunyuan-video", error="failed"))
        zeroscope = fake_provider("zeroscope-v2-xl", VideoResult(url=None, model="zeroscope-v2-xl", error="failed"))
        image = fake_provider("dall-e-3", ImageResult(url="https://img/still.png", model="dall-e-3"))
        static = StaticImageVideoProvider(image)

        result = await VideoProviderChain([hunyuan, zeroscope, static]).generate("prompt")

        assert result.url == "https://img/still.png"
        assert result.is_static_image is True
        assert result.model == "dall-e-3-static"
        image.generate.assert_awaited_once_with("prompt", size="1024x1792", style="vivid")

    @pytest.mark.asyncio
    async def test_empty_chain(self):
        result = await VideoProviderChain([]).generate("prompt")
        assert not result.ok

    @pytest.mark.asyncio
    async def test_replicate_prediction_is_polled_until_done(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.method == "POST":
                return httpx.Response(201, json={"id": "p1", "status": "starting"})
            if len(calls) < 3:
                return httpx.Response(200, json={"id": "p1", "status": "processing"})
            return httpx.Response(200, json={"id": "p1", "status": "succeeded", "output": "https://v/out.mp4"})

        client = ReplicateClient("token", poll_interval=0, transport=httpx.MockTransport(handler))
        result = await hunyuan_provider(client).generate("a dragon")

        assert result.url == "https://v/out.mp4"
        assert result.model == "hunyuan-video"
        assert calls[0] == ("POST", "/v1/predictions")
        assert calls[-1] == ("GET", "/v1/predictions/p1")

    @pytest.mark.asyncio
    async def test_replicate_failure_becomes_result_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200 if request.method == "GET" else 201,
                                  json={"id": "p1", "status": "failed", "error": "NSFW"})

        client = ReplicateClient("token", poll_interval=0, transport=httpx.MockTransport(handler))
        result = await hunyuan_provider(client).generate("a dragon")

        assert not result.ok
        assert "NSFW" in result.error


class TestStorage:

    @pytest.fixture
    def cfg(self):
        return SimpleNamespace(
            storage_bucket="dream-images",
            supabase_url="https://proj.supabase.co/",
            storage_signed_url_ttl=60,
        )

    @pytest.mark.asyncio
    async def test_retries_then_gives_up(self, cfg, fast_sleep):
        storage = SupabaseStorageRepository(cfg, client=MagicMock(), sleep=fast_sleep)
        storage._download = AsyncMock(side_effect=RuntimeError("Image download failed with HTTP 500"))

        assert await storage.upload_image_from_url("https://img", uuid4(), uuid4()) is None
        assert storage._download.await_count == 3
        assert [c.args[0] for c in fast_sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self, cfg, fast_sleep):
        client = MagicMock()
        storage = SupabaseStorageRepository(cfg, client=client, sleep=fast_sleep)
        storage._download = AsyncMock(return_value=(b"png-bytes", "image/png"))
        storage._is_reachable = AsyncMock(return_value=True)
        user_id, room_id = uuid4(), uuid4()

        stored = await storage.upload_image_from_url("https://img", user_id, room_id)

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Key"].startswith(f"{user_id}/{room_id}/")
        assert kwargs["Key"].endswith(".png")
        assert kwargs["CacheControl"] == "max-age=3600"
        assert stored.path == kwargs["Key"]
        assert stored.url == f"https://proj.supabase.co/storage/v1/object/public/dream-images/{stored.path}"

    @pytest.mark.asyncio
    async def test_unreachable_public_url_falls_back_to_signed(self, cfg, fast_sleep):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://signed"
        storage = SupabaseStorageRepository(cfg, client=client, sleep=fast_sleep)
        storage._download = AsyncMock(return_value=(b"jpg-bytes", "image/jpeg"))
        storage._is_reachable = AsyncMock(return_value=False)

        stored = await storage.upload_image_from_url("https://img", uuid4(), uuid4())

        assert stored.url == "https://signed"
        assert stored.path.endswith(".jpg")


def make_room():
    room = ChatRoom(id=uuid4(), user_id=uuid4(), title="t", bot_settings_id=3, is_active=True)
    room.bot_settings = BotSettings(id=3, gender="male", style="western")
    return room


def make_message(content, image_url=None):
    return Message(id=uuid4(), chat_room_id=uuid4(), type="bot", content=content, image_url=image_url)


@pytest_asyncio.fixture
async def media_deps():
    room = make_room()
    rooms = AsyncMock()
    rooms.get_todays_chat_room.return_value = room
    messages = AsyncMock()
    messages.get_latest_user_message.return_value = make_message("용이 하늘을 나는 꿈")
    messages.get_latest_bot_message.return_value = make_message("용은 성공의 상징입니다.")
    messages.create_message.side_effect = lambda room_id, type_, content, session, image_url=None: make_message(
        content, image_url
    )
    auth = AsyncMock()
    auth.is_premium_user.return_value = True
    ai = AsyncMock()
    ai.summarize_interpretation.return_value = "성공"
    ai.generate_short_interpretation.return_value = "짧은 해몽"
    return SimpleNamespace(room=room, rooms=rooms, messages=messages, auth=auth, ai=ai, media=AsyncMock())


class TestImageService:

    def build(self, deps, chain, storage, enabled=True):
        return ImageService(
            deps.rooms, deps.messages, deps.auth, deps.ai, deps.media, chain, storage,
            ChatContextBuilder(), enabled=enabled,
        )

    @pytest.mark.asyncio
    async def test_disabled_feature(self, media_deps, session):
        service = self.build(media_deps, AsyncMock(), AsyncMock(), enabled=False)
        with pytest.raises(FeatureDisabledError):
            await service.generate_image_for_today(uuid4(), session)

    @pytest.mark.asyncio
    async def test_no_dream_is_unsuccessful(self, media_deps, session):
        media_deps.messages.get_latest_user_message.return_value = None
        outcome = await self.build(media_deps, AsyncMock(), AsyncMock()).generate_image_for_today(uuid4(), session)
        assert outcome.success is False
        assert outcome.message == NO_DREAM

    @pytest.mark.asyncio
    async def test_free_user_needs_upgrade(self, media_deps, session):
        media_deps.auth.is_premium_user.return_value = False
        chain = AsyncMock()
        outcome = await self.build(media_deps, chain, AsyncMock()).generate_image_for_today(uuid4(), session)

        assert outcome.upgrade_required is True
        assert outcome.is_premium is False
        chain.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_content_policy_message(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = ImageResult(url=None, model="dall-e-2", error="content_policy_violation")
        outcome = await self.build(media_deps, chain, AsyncMock()).generate_image_for_today(uuid4(), session)
        assert outcome.success is False
        assert outcome.message == CONTENT_POLICY

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_provider_url(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = ImageResult(url="https://provider/img.png", model="dall-e-3")
        storage = AsyncMock()
        storage.upload_image_from_url.return_value = None

        outcome = await self.build(media_deps, chain, storage).generate_image_for_today(uuid4(), session)

        assert outcome.success is True
        assert outcome.image_url == "https://provider/img.png"
        assert outcome.image_message.content == IMAGE_MESSAGE
        assert outcome.image_message.image_url == "https://provider/img.png"
        saved = media_deps.media.add_image.call_args.args[0]
        assert saved.image_path is None
        assert chain.generate.call_args.kwargs["style"] == "vivid"

    @pytest.mark.asyncio
    async def test_stored_copy_is_preferred(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = ImageResult(url="https://provider/img.png", model="dall-e-3")
        storage = AsyncMock()
        storage.upload_image_from_url.return_value = StoredImage(url="https://bucket/a.png", path="u/r/a.png")

        outcome = await self.build(media_deps, chain, storage).generate_image_for_today(uuid4(), session)

        assert outcome.image_url == "https://bucket/a.png"
        assert media_deps.media.add_image.call_args.args[0].image_path == "u/r/a.png"

    @pytest.mark.asyncio
    async def test_save_failure_is_reported_not_raised(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = ImageResult(url="https://provider/img.png", model="dall-e-3")
        storage = AsyncMock()
        storage.upload_image_from_url.return_value = None
        media_deps.media.add_image.side_effect = RuntimeError("connection reset")

        outcome = await self.build(media_deps, chain, storage).generate_image_for_today(uuid4(), session)

        assert outcome.success is False
        assert outcome.message == GENERATION_ERROR
        assert outcome.is_premium is True
        session.rollback.assert_awaited_once()
        media_deps.messages.create_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_message_failure_is_reported_not_raised(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = ImageResult(url="https://provider/img.png", model="dall-e-3")
        storage = AsyncMock()
        storage.upload_image_from_url.return_value = None
        media_deps.messages.create_message.side_effect = RuntimeError("deadlock")

        outcome = await self.build(media_deps, chain, storage).generate_image_for_today(uuid4(), session)

        assert outcome.success is False
        assert outcome.message == GENERATION_ERROR


class TestVideoService:

    def build(self, deps, chain):
        return VideoService(
            deps.rooms, deps.messages, deps.auth, deps.ai, deps.media, chain, ChatContextBuilder(), enabled=True,
        )

    @pytest.mark.asyncio
    async def test_premium_only(self, media_deps, session):
        media_deps.auth.is_premium_user.return_value = False
        with pytest.raises(PremiumRequiredError):
            await self.build(media_deps, AsyncMock()).generate_dream_video(uuid4(), session)

    @pytest.mark.asyncio
    async def test_outcome(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = VideoResult(url="https://v/1.mp4", model="hunyuan-video")

        outcome = await self.build(media_deps, chain).generate_dream_video(uuid4(), session)

        assert outcome.video_url == "https://v/1.mp4"
        assert outcome.title == "🌙 꿈해몽: 용이 하늘을 나는에 대한 꿈의 의미"
        assert outcome.style == {"gender": "male", "approach": "western"}
        assert outcome.interpretation == "짧은 해몽"
        media_deps.media.add_video.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_save_failure_is_not_raised(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = VideoResult(url="https://v/1.mp4", model="hunyuan-video")
        media_deps.media.add_video.side_effect = RuntimeError("insert failed")

        outcome = await self.build(media_deps, chain).generate_dream_video(uuid4(), session)

        assert outcome.video_url == "https://v/1.mp4"
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_all_providers_failing(self, media_deps, session):
        chain = AsyncMock()
        chain.generate.return_value = VideoResult(url=None, model="none", error="failed")
        with pytest.raises(VideoGenerationError):
            await self.build(media_deps, chain).generate_dream_video(uuid4(), session)
