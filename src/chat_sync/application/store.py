from __future__ import annotations

from typing import Protocol

from chat_sync.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from chat_sync.application.repositories.membership import (
    MembershipReader,
    MembershipWriter,
)
from chat_sync.application.repositories.message import MessageReader, MessageWriter
from chat_sync.application.repositories.profile import ProfileReader


class DataStore(Protocol):
    """Structured query and insert/update capabilities of the backing store.

    Every writer call is its own transaction: nothing spans two calls.
    """

    conversations: ConversationReader
    conversations_w: ConversationWriter
    memberships: MembershipReader
    memberships_w: MembershipWriter
    messages: MessageReader
    messages_w: MessageWriter
    profiles: ProfileReader
