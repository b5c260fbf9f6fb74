from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass
class StoredImage:
    url: str        # public URL, or a signed URL when the public one is unreachable
    path: str       # object key inside the bucket


class ObjectStorage(ABC):
    """Port for persisting generated images."""

    @abstractmethod
    async def upload_image_from_url(
        self,
        image_url: str,
        user_id: UUID,
        chat_room_id: UUID,
        max_retries: int = 3,
    ) -> Optional[StoredImage]: ...

    @abstractmethod
    async def delete_image(self, path: str) -> bool: ...

    @abstractmethod
    async def ensure_bucket(self) -> None: ...
