from __future__ import annotations

from uuid import UUID

from chat_sync.application.dto.principal import Principal
from chat_sync.application.exceptions import ValidationError
from chat_sync.application.store import DataStore
from chat_sync.domain.entities.profile import Profile


async def search_profiles(
    principal: Principal,
    term: str,
    store: DataStore,
    limit: int = 5,
) -> list[Profile]:
    """Profiles matching ``term`` on email, full name or username, caller excluded."""
    term = term.strip()
    if not term:
        return []
    return await store.profiles.search(
        term, exclude_user_id=principal.user_id, limit=limit,
    )


async def get_profiles(store: DataStore, user_ids: list[UUID]) -> list[Profile]:
    """Resolve profiles in the given order; unknown ids are a ValidationError."""
    profiles: list[Profile] = []
    for user_id in user_ids:
        profile = await store.profiles.get_by_id(user_id)
        if profile is None:
            raise ValidationError(f"Unknown user {user_id}")
        profiles.append(profile)
    return profiles
