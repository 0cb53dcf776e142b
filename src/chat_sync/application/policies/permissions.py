from __future__ import annotations

from uuid import UUID

from chat_sync.application.dto.principal import Principal
from chat_sync.application.exceptions import AuthRequiredError, ForbiddenError, NotFoundError
from chat_sync.application.repositories.conversation import ConversationReader
from chat_sync.application.repositories.membership import MembershipReader
from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.membership import Membership


def assert_authenticated(principal: Principal | None) -> Principal:
    if principal is None:
        raise AuthRequiredError("Login required")
    return principal


async def assert_membership(
    principal: Principal,
    conversation_id: UUID,
    memberships: MembershipReader,
) -> Membership:
    """Raise unless the principal holds a membership row in the conversation."""
    membership = await memberships.get(conversation_id, principal.user_id)
    if membership is None:
        raise ForbiddenError("Not a member of this conversation")
    return membership


async def assert_conversation_access(
    principal: Principal,
    conversation_id: UUID,
    conversations: ConversationReader,
    memberships: MembershipReader,
) -> Conversation:
    conversation = await conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    await assert_membership(principal, conversation_id, memberships)
    return conversation
