from __future__ import annotations

from fastapi import APIRouter, Query, Response

from chat_sync.api.deps import CurrentPrincipal, StoreDep
from chat_sync.api.v1.schemas.conversation import (
    ConversationResponse,
    CreateDirectRequest,
    CreateGroupRequest,
)
from chat_sync.services.conversation_list import ConversationList
from chat_sync.services.profile_service import get_profiles

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    store: StoreDep,
    q: str = Query("", max_length=100),
) -> list[ConversationResponse]:
    conv_list = ConversationList(principal, store)
    convs = await conv_list.refresh()
    if q.strip():
        convs = conv_list.filter(q)
    return [ConversationResponse.model_validate(c, from_attributes=True) for c in convs]


@router.post("/direct", response_model=ConversationResponse, status_code=201)
async def create_direct_conversation(
    body: CreateDirectRequest,
    principal: CurrentPrincipal,
    store: StoreDep,
    response: Response,
) -> ConversationResponse:
    """201 for a new conversation; 200 when the pair already had one."""
    conv_list = ConversationList(principal, store)
    conv_list.validate_direct(body.user_id)
    [other] = await get_profiles(store, [body.user_id])
    conv, created = await conv_list.get_or_create_direct(other)
    if not created:
        response.status_code = 200
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.post("/group", response_model=ConversationResponse, status_code=201)
async def create_group_conversation(
    body: CreateGroupRequest,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> ConversationResponse:
    conv_list = ConversationList(principal, store)
    member_ids = conv_list.validate_group(body.name, body.member_ids)
    members = await get_profiles(store, member_ids)
    conv = await conv_list.create_group(body.name, members)
    return ConversationResponse.model_validate(conv, from_attributes=True)
