from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Membership:
    id: UUID
    user_id: UUID
    conversation_id: UUID
    is_admin: bool
    is_muted: bool
    last_read_message_id: UUID | None
    created_at: datetime
