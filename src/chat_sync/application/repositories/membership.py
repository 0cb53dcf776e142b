from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_sync.domain.entities.membership import Membership


class MembershipReader(Protocol):
    async def get(self, conversation_id: UUID, user_id: UUID) -> Membership | None: ...


class MembershipWriter(Protocol):
    async def add_many(self, memberships: list[Membership]) -> None:
        """Insert all rows or none."""
        ...

    async def set_last_read(
        self, conversation_id: UUID, user_id: UUID, message_id: UUID,
    ) -> None: ...

    async def set_muted(self, conversation_id: UUID, user_id: UUID, muted: bool) -> None: ...
