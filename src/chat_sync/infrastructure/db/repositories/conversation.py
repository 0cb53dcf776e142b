from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import aliased

from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import ChangeType, Table
from chat_sync.infrastructure.db.mappers import conversation as mapper
from chat_sync.infrastructure.db.models.conversation import ConversationModel
from chat_sync.infrastructure.db.models.membership import MembershipModel
from chat_sync.infrastructure.db.models.message import MessageModel
from chat_sync.infrastructure.db.repositories._session import SessionFactory, reading, writing
from chat_sync.infrastructure.db.repositories.outbox import OutboxRepo


class ConversationReaderRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        async with reading(self._sessions, "conversation") as session:
            model = await session.get(ConversationModel, conversation_id)
            return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: UUID) -> list[Conversation]:
        ranked = (
            select(
                MessageModel.conversation_id,
                MessageModel.content,
                MessageModel.created_at,
                MessageModel.user_id,
                func.row_number()
                .over(
                    partition_by=MessageModel.conversation_id,
                    order_by=(MessageModel.created_at.desc(), MessageModel.id.desc()),
                )
                .label("rn"),
            )
            .subquery()
        )
        stmt = (
            select(
                ConversationModel,
                ranked.c.content,
                ranked.c.created_at,
                ranked.c.user_id,
            )
            .join(
                MembershipModel,
                MembershipModel.conversation_id == ConversationModel.id,
            )
            .outerjoin(
                ranked,
                (ranked.c.conversation_id == ConversationModel.id) & (ranked.c.rn == 1),
            )
            .where(MembershipModel.user_id == user_id)
            .order_by(ConversationModel.created_at.desc(), ConversationModel.id)
        )
        async with reading(self._sessions, "conversations") as session:
            result = await session.execute(stmt)
            return [
                mapper.model_to_entity(model, content, created_at, author_id)
                for model, content, created_at, author_id in result.all()
            ]

    async def find_direct(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        mine = aliased(MembershipModel)
        theirs = aliased(MembershipModel)
        stmt = (
            select(ConversationModel)
            .join(
                mine,
                (mine.conversation_id == ConversationModel.id) & (mine.user_id == user_a),
            )
            .join(
                theirs,
                (theirs.conversation_id == ConversationModel.id) & (theirs.user_id == user_b),
            )
            .where(ConversationModel.is_group.is_(False))
            .order_by(ConversationModel.created_at.asc())
            .limit(1)
        )
        async with reading(self._sessions, "direct conversation") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return mapper.model_to_entity(model) if model else None


class ConversationWriterRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def create(self, conversation: Conversation) -> Conversation:
        async with writing(self._sessions, "conversation") as session:
            model = mapper.entity_to_model(conversation)
            session.add(model)
            await session.flush()
            await OutboxRepo(session).add_change(
                RowChanged(Table.CONVERSATIONS, ChangeType.INSERT, new=mapper.model_to_row(model))
            )
        return mapper.model_to_entity(model)
