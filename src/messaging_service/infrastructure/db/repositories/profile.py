from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from messaging_service.domain.entities.profile import Profile
from messaging_service.infrastructure.db.mappers import profile as mapper
from messaging_service.infrastructure.db.models.profile import ProfileModel


class ProfileReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, profile_id: UUID) -> Profile | None:
        result = await self._session.get(ProfileModel, profile_id)
        return mapper.model_to_entity(result) if result else None
