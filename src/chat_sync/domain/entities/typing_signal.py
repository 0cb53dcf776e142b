from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class TypingSignal:
    """In-memory only; never persisted."""

    user_id: UUID
    conversation_id: UUID
    expires_at: datetime
