from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class LastMessage:
    """Denormalized preview of the newest message in a conversation."""

    content: str
    created_at: datetime
    user_id: UUID


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    name: str
    is_group: bool
    created_at: datetime
    description: str | None = None
    created_by: UUID | None = None
    last_message: LastMessage | None = None
