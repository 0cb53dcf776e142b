"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # ping | conversation.open | message.send | typing | ...
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # conversations.snapshot | messages.snapshot | typing.snapshot | navigate | error | pong
    data: dict[str, Any] = {}


class OpenConversation(BaseModel):
    conversation_id: UUID


class SendMessage(BaseModel):
    content: str


class CreateDirect(BaseModel):
    user_id: UUID


class CreateGroup(BaseModel):
    name: str
    member_ids: list[UUID] = Field(default_factory=list)


class SetMuted(BaseModel):
    muted: bool
