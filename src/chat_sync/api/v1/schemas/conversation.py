from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class LastMessageResponse(BaseModel):
    content: str
    created_at: datetime
    user_id: UUID

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    id: UUID
    name: str
    is_group: bool
    created_at: datetime
    description: str | None = None
    created_by: UUID | None = None
    last_message: LastMessageResponse | None = None

    model_config = {"from_attributes": True}


class CreateDirectRequest(BaseModel):
    user_id: UUID


class CreateGroupRequest(BaseModel):
    name: str
    member_ids: list[UUID] = Field(default_factory=list)
