from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update

from chat_sync.domain.entities.message import Message
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import ChangeType, Table
from chat_sync.infrastructure.db.mappers import conversation as conversation_mapper
from chat_sync.infrastructure.db.mappers import message as mapper
from chat_sync.infrastructure.db.mappers import profile as profile_mapper
from chat_sync.infrastructure.db.models.conversation import ConversationModel
from chat_sync.infrastructure.db.models.message import MessageModel
from chat_sync.infrastructure.db.models.profile import ProfileModel
from chat_sync.infrastructure.db.repositories._session import SessionFactory, reading, writing
from chat_sync.infrastructure.db.repositories.outbox import OutboxRepo


class MessageReaderRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        stmt = (
            select(MessageModel, ProfileModel)
            .outerjoin(ProfileModel, ProfileModel.id == MessageModel.user_id)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        async with reading(self._sessions, "messages") as session:
            result = await session.execute(stmt)
            return [
                mapper.model_to_entity(
                    model,
                    profile_mapper.model_to_entity(profile).to_author() if profile else None,
                )
                for model, profile in result.all()
            ]


class MessageWriterRepo:
    def __init__(self, sessions: SessionFactory) -> None:
        self._sessions = sessions

    async def create(self, message: Message) -> None:
        """Insert the message and bump its conversation in one transaction."""
        async with writing(self._sessions, "message") as session:
            session.add(mapper.entity_to_model(message))
            await session.flush()
            result = await session.execute(
                update(ConversationModel)
                .where(ConversationModel.id == message.conversation_id)
                .values(updated_at=func.now())
                .returning(ConversationModel)
            )
            conversation = result.scalar_one()

            outbox = OutboxRepo(session)
            await outbox.add_change(
                RowChanged(Table.MESSAGES, ChangeType.INSERT, new=mapper.entity_to_row(message))
            )
            await outbox.add_change(
                RowChanged(
                    Table.CONVERSATIONS,
                    ChangeType.UPDATE,
                    new=conversation_mapper.model_to_row(conversation),
                )
            )
