from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_sync.application.exceptions import PersistError
from chat_sync.domain.entities.membership import Membership
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import ChangeType, Table
from chat_sync.infrastructure.db.mappers import membership as mapper
from chat_sync.infrastructure.db.models.membership import MembershipModel
from chat_sync.infrastructure.db.repositories._session import SessionFactory, reading, writing
from chat_sync.infrastructure.db.repositories.outbox import OutboxRepo


class MembershipReaderRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def get(self, conversation_id: UUID, user_id: UUID) -> Membership | None:
        stmt = select(MembershipModel).where(
            MembershipModel.conversation_id == conversation_id,
            MembershipModel.user_id == user_id,
        )
        async with reading(self._sessions, "membership") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return mapper.model_to_entity(model) if model else None


class MembershipWriterRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def add_many(self, memberships: list[Membership]) -> None:
        async with writing(self._sessions, "memberships") as session:
            session.add_all([mapper.entity_to_model(m) for m in memberships])
            await session.flush()
            outbox = OutboxRepo(session)
            for membership in memberships:
                await outbox.add_change(
                    RowChanged(Table.MEMBERSHIPS, ChangeType.INSERT, new=mapper.entity_to_row(membership))
                )

    async def set_last_read(
        self, conversation_id: UUID, user_id: UUID, message_id: UUID,
    ) -> None:
        async with writing(self._sessions, "read marker") as session:
            await self._update(
                session, conversation_id, user_id, last_read_message_id=message_id,
            )

    async def set_muted(self, conversation_id: UUID, user_id: UUID, muted: bool) -> None:
        async with writing(self._sessions, "mute flag") as session:
            await self._update(session, conversation_id, user_id, is_muted=muted)

    async def _update(
        self,
        session: AsyncSession,
        conversation_id: UUID,
        user_id: UUID,
        **values: Any,
    ) -> None:
        stmt = (
            update(MembershipModel)
            .where(
                MembershipModel.conversation_id == conversation_id,
                MembershipModel.user_id == user_id,
            )
            .values(**values)
            .returning(MembershipModel)
        )
        result = await session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            raise PersistError("Membership not found")
        await OutboxRepo(session).add_change(
            RowChanged(
                Table.MEMBERSHIPS,
                ChangeType.UPDATE,
                new=mapper.entity_to_row(mapper.model_to_entity(model)),
            )
        )
