"""OpenAI image providers (DALL-E 3 and DALL-E 2)."""
from __future__ import annotations

import logging

from openai import AsyncOpenAI

from haemong_backend.domain.ports.image_generation import ImageProvider, ImageResult

logger = logging.getLogger(__name__)

_DALLE2_SIZES = {"256x256", "512x512", "1024x1024"}


def classify_image_error(error: Exception) -> str:
    """Map a provider exception onto the two error kinds callers distinguish."""
    if "content_policy_violation" in str(error):
        return "content_policy_violation"
    return "error"


class OpenAIImageProvider(ImageProvider):
    """One OpenAI image model. Chain several of these to get a fallback order."""

    def __init__(self, client: AsyncOpenAI, model: str = "dall-e-3", quality: str = "standard"):
        self._client = client
        self._model = model
        self._quality = quality
        self.name = model

    async def generate(self, prompt: str, size: str = "1024x1024", style: str = "vivid") -> ImageResult:
        try:
            logger.info(f"[{self._model}] generating image for prompt: {prompt[:100]}...")
            if self._model == "dall-e-3":
                response = await self._client.images.generate(
                    model=self._model,
                    prompt=prompt,
                    size=size,
                    quality=self._quality,
                    style=style,
                    n=1,
                )
            else:
                # dall-e-2 has no style/quality knobs and a shorter prompt limit
                response = await self._client.images.generate(
                    model=self._model,
                    prompt=prompt[:1000],
                    size=size if size in _DALLE2_SIZES else "1024x1024",
                    n=1,
                )
            url = response.data[0].url
            logger.info(f"[{self._model}] image generated: {url}")
            return ImageResult(url=url, model=self._model)
        except Exception as e:
            kind = classify_image_error(e)
            if kind == "content_policy_violation":
                logger.warning(f"[{self._model}] content policy violation for prompt: {prompt[:100]}...")
            else:
                logger.error(f"[{self._model}] image generation failed: {e}")
            return ImageResult(url=None, model=self._model, error=kind)


class ImageProviderChain:
    """Try providers in order; the first success wins."""

    def __init__(self, providers):
        self._providers = list(providers)

    @property
    def providers(self):
        return list(self._providers)

    async def generate(self, prompt: str, size: str = "1024x1024", style: str = "vivid") -> ImageResult:
        last = ImageResult(url=None, model="none", error="error")
        for provider in self._providers:
            result = await provider.generate(prompt, size=size, style=style)
            if result.ok:
                return result
            logger.warning(f"Image provider {provider.name} failed ({result.error}); trying next")
            last = result
        logger.error("All image providers failed")
        return last
