"""Video providers: Replicate-hosted models plus a still-image last resort."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from haemong_backend.domain.ports.image_generation import ImageProvider
from haemong_backend.domain.ports.video_generation import VideoProvider, VideoResult

logger = logging.getLogger(__name__)

REPLICATE_API = "https://api.replicate.com/v1"
TERMINAL_STATES = {"succeeded", "failed", "canceled"}

HUNYUAN_VIDEO = "tencent/hunyuan-video:6c9132aee14409cd6568d030453f1ba50f5f3412b844fe67f78a9eb62d55664f"
ZEROSCOPE_V2_XL = "anotherjesse/zeroscope-v2-xl:9f747673945c62801b13b84701c6b2c53589db5b3f5de1b4c5a1f47b0b7a0e7b"


class ReplicateError(RuntimeError):
    pass


def extract_output_url(output: Any) -> Optional[str]:
    """Replicate models return either a URL string or a list of URLs."""
    if isinstance(output, str):
        return output
    if isinstance(output, list) and output:
        first = output[0]
        return first if isinstance(first, str) else None
    return None


class ReplicateClient:
    """Minimal async client for the Replicate predictions API."""

    def __init__(
        self,
        api_token: str,
        poll_interval: float = 2.0,
        timeout: float = 600.0,
        base_url: str = REPLICATE_API,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = api_token
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._base_url = base_url
        self._transport = transport

    async def run(self, model_version: str, inputs: Dict[str, Any]) -> Any:
        """Create a prediction and wait for its output."""
        version = model_version.split(":", 1)[1] if ":" in model_version else model_version
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }
        deadline = time.monotonic() + self._timeout

        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(60.0),
            transport=self._transport,
        ) as client:
            resp = await client.post("/predictions", json={"version": version, "input": inputs})
            if resp.status_code >= 400:
                raise ReplicateError(f"Replicate create failed ({resp.status_code}): {resp.text[:200]}")
            prediction = resp.json()
            logger.info(f"Replicate prediction {prediction.get('id')} created for {model_version.split(':')[0]}")

            while prediction.get("status") not in TERMINAL_STATES:
                if time.monotonic() > deadline:
                    raise ReplicateError(f"Replicate prediction {prediction.get('id')} timed out")
                await asyncio.sleep(self._poll_interval)
                resp = await client.get(f"/predictions/{prediction['id']}")
                if resp.status_code >= 400:
                    raise ReplicateError(f"Replicate poll failed ({resp.status_code})")
                prediction = resp.json()

        if prediction["status"] != "succeeded":
            raise ReplicateError(f"Replicate prediction {prediction['status']}: {prediction.get('error')}")
        return prediction.get("output")


class ReplicateVideoProvider(VideoProvider):
    def __init__(self, client: ReplicateClient, name: str, model_version: str, default_input: Dict[str, Any]):
        self._client = client
        self._model_version = model_version
        self._default_input = default_input
        self.name = name

    async def generate(self, prompt: str) -> VideoResult:
        try:
            output = await self._client.run(self._model_version, {"prompt": prompt, **self._default_input})
        except Exception as e:
            logger.error(f"[{self.name}] video generation failed: {e}")
            return VideoResult(url=None, model=self.name, error=str(e))

        url = extract_output_url(output)
        if not url:
            logger.error(f"[{self.name}] unexpected output: {output!r}")
            return VideoResult(url=None, model=self.name, error="empty output")
        return VideoResult(url=url, model=self.name)


def hunyuan_provider(client: ReplicateClient) -> ReplicateVideoProvider:
    return ReplicateVideoProvider(
        client,
        name="hunyuan-video",
        model_version=HUNYUAN_VIDEO,
        default_input={
            "video_length": 100,
            "width": 480,
            "height": 850,
            "fps": 24,
            "infer_steps": 50,
            "embedded_guidance_scale": 6,
        },
    )


def zeroscope_provider(client: ReplicateClient) -> ReplicateVideoProvider:
    return ReplicateVideoProvider(
        client,
        name="zeroscope-v2-xl",
        model_version=ZEROSCOPE_V2_XL,
        default_input={
            "width": 1024,
            "height": 576,
            "num_frames": 24,
            "num_inference_steps": 50,
            "guidance_scale": 17.5,
            "model": "xl",
        },
    )


class StaticImageVideoProvider(VideoProvider):
    """Last resort: a portrait still image in place of a clip."""

    def __init__(self, image_provider: ImageProvider):
        self._image_provider = image_provider
        self.name = f"{image_provider.name}-static"

    async def generate(self, prompt: str) -> VideoResult:
        result = await self._image_provider.generate(prompt, size="1024x1792", style="vivid")
        if not result.ok:
            return VideoResult(url=None, model=self.name, is_static_image=True, error=result.error)
        return VideoResult(url=result.url, model=self.name, is_static_image=True)


class VideoProviderChain:
    def __init__(self, providers: Iterable[VideoProvider]):
        self._providers: List[VideoProvider] = list(providers)

    @property
    def providers(self) -> List[VideoProvider]:
        return list(self._providers)

    async def generate(self, prompt: str) -> VideoResult:
        last = VideoResult(url=None, model="none", error="no providers configured")
        for provider in self._providers:
            result = await provider.generate(prompt)
            if result.ok:
                logger.info(f"Video generated by {provider.name}")
                return result
            logger.warning(f"Video provider {provider.name} failed ({result.error}); trying next")
            last = result
        logger.error("All video providers failed")
        return last
