from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_sync.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def list_for_user(self, user_id: UUID) -> list[Conversation]:
        """Conversations the user has a membership row in, newest first,
        each with its most recent message as ``last_message``."""
        ...

    async def find_direct(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        """Existing non-group conversation shared by exactly these two users."""
        ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation: ...
