from __future__ import annotations

from fastapi import APIRouter, Query

from chat_sync.api.deps import CurrentPrincipal, StoreDep
from chat_sync.api.v1.schemas.profile import ProfileResponse
from chat_sync.config import settings
from chat_sync.services import profile_service

router = APIRouter(prefix="/api/v1/chat/profiles", tags=["profiles"])


@router.get("", response_model=list[ProfileResponse])
async def search_profiles(
    principal: CurrentPrincipal,
    store: StoreDep,
    q: str = Query("", max_length=100),
) -> list[ProfileResponse]:
    profiles = await profile_service.search_profiles(
        principal, q, store, limit=settings.PROFILE_SEARCH_LIMIT,
    )
    return [ProfileResponse.model_validate(p, from_attributes=True) for p in profiles]
