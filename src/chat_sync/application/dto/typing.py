from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TypingPayload(BaseModel):
    """Body of a ``typing`` broadcast event."""

    model_config = ConfigDict(extra="ignore")

    user_id: UUID
