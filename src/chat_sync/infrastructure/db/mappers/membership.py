from __future__ import annotations

from typing import Any

from chat_sync.domain.entities.membership import Membership
from chat_sync.infrastructure.db.models.membership import MembershipModel


def model_to_entity(model: MembershipModel) -> Membership:
    return Membership(
        id=model.id,
        user_id=model.user_id,
        conversation_id=model.conversation_id,
        is_admin=model.is_admin,
        is_muted=model.is_muted,
        last_read_message_id=model.last_read_message_id,
        created_at=model.created_at,
    )


def entity_to_model(entity: Membership) -> MembershipModel:
    return MembershipModel(
        id=entity.id,
        user_id=entity.user_id,
        conversation_id=entity.conversation_id,
        is_admin=entity.is_admin,
        is_muted=entity.is_muted,
        last_read_message_id=entity.last_read_message_id,
        created_at=entity.created_at,
    )


def entity_to_row(entity: Membership) -> dict[str, Any]:
    return {
        "id": str(entity.id),
        "user_id": str(entity.user_id),
        "conversation_id": str(entity.conversation_id),
        "is_admin": entity.is_admin,
        "is_muted": entity.is_muted,
        "last_read_message_id": (
            str(entity.last_read_message_id) if entity.last_read_message_id else None
        ),
        "created_at": entity.created_at.isoformat(),
    }
