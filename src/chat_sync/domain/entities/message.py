from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class AuthorSummary:
    id: UUID
    display_name: str


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    conversation_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    is_edited: bool = False
    reply_to_id: UUID | None = None
    author: AuthorSummary | None = None
