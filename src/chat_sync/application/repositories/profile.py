from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_sync.domain.entities.profile import Profile


class ProfileReader(Protocol):
    async def get_by_id(self, user_id: UUID) -> Profile | None: ...

    async def search(
        self, term: str, *, exclude_user_id: UUID, limit: int = 5,
    ) -> list[Profile]: ...
