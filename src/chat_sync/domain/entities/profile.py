from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from chat_sync.domain.entities.message import AuthorSummary


@dataclass(frozen=True, slots=True)
class Profile:
    id: UUID
    email: str | None
    username: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or self.email or str(self.id)

    def to_author(self) -> AuthorSummary:
        return AuthorSummary(id=self.id, display_name=self.display_name)
