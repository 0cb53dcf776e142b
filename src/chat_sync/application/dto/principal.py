from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from the session token."""

    user_id: UUID
    email: str | None = None

    @property
    def principal_key(self) -> str:
        return f"user:{self.user_id}"
