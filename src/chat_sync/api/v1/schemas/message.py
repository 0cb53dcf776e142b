from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from chat_sync.application.dto.message import MessageEntry
from chat_sync.domain.value_objects.enums import DeliveryState


class AuthorResponse(BaseModel):
    id: UUID
    display_name: str

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    is_edited: bool
    reply_to_id: UUID | None
    author: AuthorResponse | None
    state: DeliveryState

    @classmethod
    def from_entry(cls, entry: MessageEntry) -> MessageResponse:
        message = entry.message
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            user_id=message.user_id,
            content=message.content,
            created_at=message.created_at,
            is_edited=message.is_edited,
            reply_to_id=message.reply_to_id,
            author=(
                AuthorResponse.model_validate(message.author, from_attributes=True)
                if message.author
                else None
            ),
            state=entry.state,
        )
