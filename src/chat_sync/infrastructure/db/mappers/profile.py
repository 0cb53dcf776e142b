from __future__ import annotations

from chat_sync.domain.entities.profile import Profile
from chat_sync.infrastructure.db.models.profile import ProfileModel


def model_to_entity(model: ProfileModel) -> Profile:
    return Profile(
        id=model.id,
        email=model.email,
        username=model.username,
        full_name=model.full_name,
        avatar_url=model.avatar_url,
    )
