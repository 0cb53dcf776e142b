from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from chat_sync.domain.entities.message import AuthorSummary, Message
from chat_sync.domain.value_objects.enums import DeliveryState


@dataclass(slots=True)
class MessageEntry:
    """One message in the local view, keyed by its client-generated id."""

    message: Message
    state: DeliveryState

    @property
    def id(self) -> UUID:
        return self.message.id

    def confirm(self) -> bool:
        """Transition to CONFIRMED. Returns True if the state changed."""
        if self.state == DeliveryState.CONFIRMED:
            return False
        self.state = DeliveryState.CONFIRMED
        return True


class MessageRow(BaseModel):
    """Raw ``messages`` columns as carried by a change-feed INSERT payload."""

    model_config = ConfigDict(extra="ignore")

    id: UUID
    conversation_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    is_edited: bool = False
    reply_to_id: UUID | None = None

    def to_entity(self, author: AuthorSummary | None = None) -> Message:
        return Message(
            id=self.id,
            conversation_id=self.conversation_id,
            user_id=self.user_id,
            content=self.content,
            created_at=self.created_at,
            is_edited=self.is_edited,
            reply_to_id=self.reply_to_id,
            author=author,
        )
