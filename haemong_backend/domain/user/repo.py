"""Port interface for user persistence."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from .entities import User


class UserRepository(ABC):
    """Hexagonal port: persistence operations for the User aggregate.

    Lookups return ``None`` when no row matches; any other failure is raised.
    """

    @abstractmethod
    async def create(self, user: User, session: AsyncSession) -> User: ...

    @abstractmethod
    async def get_by_id(self, uid: UUID, session: AsyncSession) -> Optional[User]: ...

    @abstractmethod
    async def get_by_email(self, email: str, session: AsyncSession) -> Optional[User]: ...

    @abstractmethod
    async def get_by_provider(self, provider: str, provider_id: str, session: AsyncSession) -> Optional[User]: ...

    @abstractmethod
    async def get_by_nickname(self, nickname: str, session: AsyncSession) -> Optional[User]: ...

    @abstractmethod
    async def update_nickname(self, uid: UUID, nickname: str, session: AsyncSession) -> Optional[User]: ...

    @abstractmethod
    async def update_subscription(
        self,
        uid: UUID,
        status: str,
        expires_at: Optional[datetime],
        session: AsyncSession,
    ) -> Optional[User]: ...

    @abstractmethod
    async def deactivate(self, uid: UUID, session: AsyncSession) -> None: ...

    @abstractmethod
    async def get_activity_stats(self, uid: UUID, month_start: datetime, session: AsyncSession) -> dict: ...
