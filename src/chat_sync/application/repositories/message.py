from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_sync.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        """All messages ordered by created_at ascending, with author summaries."""
        ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> None:
        """Persist a client-built message. Raises ConflictError on a duplicate id."""
        ...
