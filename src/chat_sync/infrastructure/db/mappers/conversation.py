from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from chat_sync.domain.entities.conversation import Conversation, LastMessage
from chat_sync.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(
    model: ConversationModel,
    last_content: str | None = None,
    last_created_at: datetime | None = None,
    last_user_id: UUID | None = None,
) -> Conversation:
    last_message = None
    if last_content is not None and last_created_at is not None and last_user_id is not None:
        last_message = LastMessage(
            content=last_content,
            created_at=last_created_at,
            user_id=last_user_id,
        )
    return Conversation(
        id=model.id,
        name=model.name,
        is_group=model.is_group,
        created_at=model.created_at,
        description=model.description,
        created_by=model.created_by,
        last_message=last_message,
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        name=entity.name,
        description=entity.description,
        is_group=entity.is_group,
        created_by=entity.created_by,
        created_at=entity.created_at,
    )


def model_to_row(model: ConversationModel) -> dict[str, Any]:
    return {
        "id": str(model.id),
        "name": model.name,
        "description": model.description,
        "is_group": model.is_group,
        "created_by": str(model.created_by) if model.created_by else None,
        "created_at": model.created_at.isoformat() if model.created_at else None,
    }
