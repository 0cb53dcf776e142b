from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from chat_sync.api.deps import CurrentPrincipal, StoreDep
from chat_sync.api.v1.schemas.message import MessageResponse
from chat_sync.application.policies.permissions import assert_conversation_access
from chat_sync.services.message_stream import MessageStream

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> list[MessageResponse]:
    await assert_conversation_access(
        principal, conversation_id, store.conversations, store.memberships,
    )
    stream = MessageStream(conversation_id, principal, store)
    await stream.load_history()
    return [MessageResponse.from_entry(e) for e in stream.entries]
