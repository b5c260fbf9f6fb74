"""
Supabase Storage repository.

Talks to Supabase Storage through its S3-compatible endpoint with boto3 (run in
the default executor, boto3 is blocking) and uses aiohttp for downloading the
provider image and probing the public URL.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Tuple
from uuid import UUID, uuid4

import aiohttp
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from haemong_backend.config import Settings
from haemong_backend.domain.ports.object_storage import ObjectStorage, StoredImage

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
DOWNLOAD_TIMEOUT = 30
REACHABILITY_TIMEOUT = 5
CACHE_CONTROL = "max-age=3600"


class ImageTooLargeError(ValueError):
    pass


class SupabaseStorageRepository(ObjectStorage):
    def __init__(
        self,
        cfg: Settings,
        client=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._bucket = cfg.storage_bucket
        self._supabase_url = cfg.supabase_url.rstrip("/")
        self._signed_url_ttl = cfg.storage_signed_url_ttl
        self._sleep = sleep
        self._cfg = cfg
        self._client = client

    @property
    def client(self):
        # created on first use so the app can boot without storage credentials
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self._cfg.storage_endpoint_url,
                region_name=self._cfg.storage_region,
                aws_access_key_id=self._cfg.storage_access_key_id,
                aws_secret_access_key=self._cfg.storage_secret_access_key,
                config=Config(s3={"addressing_style": "path"}, signature_version="s3v4"),
            )
        return self._client

    # ────────────────────────── public API ────────────────────────── #

    async def upload_image_from_url(
        self,
        image_url: str,
        user_id: UUID,
        chat_room_id: UUID,
        max_retries: int = 3,
    ) -> Optional[StoredImage]:
        """Copy a provider image into the bucket.

        Retries the whole download+upload with 1s/2s/4s backoff and returns
        ``None`` once every attempt has failed.
        """
        for attempt in range(1, max_retries + 1):
            try:
                data, content_type = await self._download(image_url)
                ext = "png" if "png" in content_type else "jpg"
                key = f"{user_id}/{chat_room_id}/{int(time.time() * 1000)}_{uuid4()}.{ext}"

                await self._run(
                    self.client.put_object,
                    Bucket=self._bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    CacheControl=CACHE_CONTROL,
                )
                logger.info(f"Uploaded image to storage: {key} ({len(data)} bytes, attempt {attempt})")

                public_url = self.public_url(key)
                if await self._is_reachable(public_url):
                    return StoredImage(url=public_url, path=key)

                logger.warning(f"Public URL not reachable, falling back to signed URL: {key}")
                signed_url = await self.signed_url(key)
                return StoredImage(url=signed_url, path=key)

            except Exception as e:
                logger.error(f"Image upload attempt {attempt}/{max_retries} failed: {e}")
                if attempt < max_retries:
                    await self._sleep(2 ** (attempt - 1))

        logger.error(f"Giving up on image upload after {max_retries} attempts: {image_url[:100]}")
        return None

    async def delete_image(self, path: str) -> bool:
        try:
            await self._run(self.client.delete_object, Bucket=self._bucket, Key=path)
            return True
        except ClientError as e:
            logger.error(f"Failed to delete image {path}: {e}")
            return False

    async def ensure_bucket(self) -> None:
        try:
            await self._run(self.client.head_bucket, Bucket=self._bucket)
            return
        except ClientError:
            logger.info(f"Bucket {self._bucket} not found, creating it")
        try:
            await self._run(self.client.create_bucket, Bucket=self._bucket)
        except ClientError as e:
            logger.error(f"Could not create bucket {self._bucket}: {e}")

    def public_url(self, path: str) -> str:
        return f"{self._supabase_url}/storage/v1/object/public/{self._bucket}/{path}"

    async def signed_url(self, path: str) -> str:
        return await self._run(
            self.client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self._bucket, "Key": path},
            ExpiresIn=self._signed_url_ttl,
        )

    # ─────────────────────────── helpers ──────────────────────────── #

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    async def _download(self, url: str) -> Tuple[bytes, str]:
        timeout = aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise RuntimeError(f"Image download failed with HTTP {resp.status}")
                if resp.content_length and resp.content_length > MAX_IMAGE_BYTES:
                    raise ImageTooLargeError(f"Image is {resp.content_length} bytes")
                data = await resp.read()
                content_type = resp.headers.get("Content-Type", "image/png")

        if len(data) > MAX_IMAGE_BYTES:
            raise ImageTooLargeError(f"Image is {len(data)} bytes")
        return data, content_type

    async def _is_reachable(self, url: str) -> bool:
        try:
            timeout = aiohttp.ClientTimeout(total=REACHABILITY_TIMEOUT)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(url) as resp:
                    return resp.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Reachability check failed for {url}: {e}")
            return False
