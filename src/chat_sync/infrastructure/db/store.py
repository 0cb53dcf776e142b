from __future__ import annotations

from chat_sync.infrastructure.db.repositories._session import SessionFactory
from chat_sync.infrastructure.db.repositories.conversation import (
    ConversationReaderRepo,
    ConversationWriterRepo,
)
from chat_sync.infrastructure.db.repositories.membership import (
    MembershipReaderRepo,
    MembershipWriterRepo,
)
from chat_sync.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)
from chat_sync.infrastructure.db.repositories.profile import ProfileReaderRepo


class SqlAlchemyStore:
    """Concrete DataStore; each call opens and closes its own session."""

    def __init__(self, sessions: SessionFactory) -> None:
        self.conversations = ConversationReaderRepo(sessions)
        self.conversations_w = ConversationWriterRepo(sessions)
        self.memberships = MembershipReaderRepo(sessions)
        self.memberships_w = MembershipWriterRepo(sessions)
        self.messages = MessageReaderRepo(sessions)
        self.messages_w = MessageWriterRepo(sessions)
        self.profiles = ProfileReaderRepo(sessions)
