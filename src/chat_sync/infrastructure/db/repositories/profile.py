from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select

from chat_sync.domain.entities.profile import Profile
from chat_sync.infrastructure.db.mappers import profile as mapper
from chat_sync.infrastructure.db.models.profile import ProfileModel
from chat_sync.infrastructure.db.repositories._session import SessionFactory, reading


class ProfileReaderRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def get_by_id(self, user_id: UUID) -> Profile | None:
        async with reading(self._sessions, "profile") as session:
            model = await session.get(ProfileModel, user_id)
            return mapper.model_to_entity(model) if model else None

    async def search(
        self, term: str, *, exclude_user_id: UUID, limit: int = 5,
    ) -> list[Profile]:
        pattern = f"%{term}%"
        stmt = (
            select(ProfileModel)
            .where(
                or_(
                    ProfileModel.email.ilike(pattern),
                    ProfileModel.full_name.ilike(pattern),
                    ProfileModel.username.ilike(pattern),
                ),
                ProfileModel.id != exclude_user_id,
            )
            .order_by(ProfileModel.full_name.asc().nullslast(), ProfileModel.id)
            .limit(limit)
        )
        async with reading(self._sessions, "profiles") as session:
            result = await session.execute(stmt)
            return [mapper.model_to_entity(m) for m in result.scalars().all()]
