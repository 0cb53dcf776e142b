from __future__ import annotations

from typing import Any

from chat_sync.domain.entities.message import AuthorSummary, Message
from chat_sync.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel, author: AuthorSummary | None = None) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        user_id=model.user_id,
        content=model.content,
        created_at=model.created_at,
        is_edited=model.is_edited,
        reply_to_id=model.reply_to_id,
        author=author,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        user_id=entity.user_id,
        content=entity.content,
        is_edited=entity.is_edited,
        reply_to_id=entity.reply_to_id,
        created_at=entity.created_at,
    )


def entity_to_row(entity: Message) -> dict[str, Any]:
    """Raw column values as a change-feed payload carries them."""
    return {
        "id": str(entity.id),
        "conversation_id": str(entity.conversation_id),
        "user_id": str(entity.user_id),
        "content": entity.content,
        "is_edited": entity.is_edited,
        "reply_to_id": str(entity.reply_to_id) if entity.reply_to_id else None,
        "created_at": entity.created_at.isoformat(),
    }
