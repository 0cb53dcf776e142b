"""Shared test fixtures."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from chat_sync.application.dto.principal import Principal
from chat_sync.application.exceptions import FetchError, PersistError
from chat_sync.application.ports.realtime import (
    BroadcastHandler,
    ChangeHandler,
    ColumnFilter,
)
from chat_sync.domain.entities.conversation import Conversation, LastMessage
from chat_sync.domain.entities.membership import Membership
from chat_sync.domain.entities.message import Message
from chat_sync.domain.entities.profile import Profile
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import ChangeType, Table

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

ALICE_ID = UUID("00000000-0000-0000-0000-00000000000a")
BOB_ID = UUID("00000000-0000-0000-0000-00000000000b")
CAROL_ID = UUID("00000000-0000-0000-0000-00000000000c")


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id=ALICE_ID, email="alice@example.com")


def make_profile(user_id: UUID, name: str | None = None) -> Profile:
    return Profile(id=user_id, email=f"{user_id.hex[-4:]}@example.com", full_name=name)


def make_conversation(
    *,
    conversation_id: UUID | None = None,
    name: str = "general",
    is_group: bool = True,
    created_at: datetime = T0,
    last_message: LastMessage | None = None,
) -> Conversation:
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        name=name,
        is_group=is_group,
        created_at=created_at,
        last_message=last_message,
    )


def make_membership(conversation_id: UUID, user_id: UUID, *, is_admin: bool = False) -> Membership:
    return Membership(
        id=uuid.uuid4(),
        user_id=user_id,
        conversation_id=conversation_id,
        is_admin=is_admin,
        is_muted=False,
        last_read_message_id=None,
        created_at=T0,
    )


def make_message(
    *,
    conversation_id: UUID,
    user_id: UUID = BOB_ID,
    content: str = "hello",
    created_at: datetime = T0,
    message_id: UUID | None = None,
) -> Message:
    return Message(
        id=message_id or uuid.uuid4(),
        conversation_id=conversation_id,
        user_id=user_id,
        content=content,
        created_at=created_at,
    )


def message_insert(message: Message) -> RowChanged:
    """The change-feed INSERT a persisted message produces."""
    return RowChanged(
        table=Table.MESSAGES,
        type=ChangeType.INSERT,
        new={
            "id": str(message.id),
            "conversation_id": str(message.conversation_id),
            "user_id": str(message.user_id),
            "content": message.content,
            "created_at": message.created_at.isoformat(),
            "is_edited": message.is_edited,
            "reply_to_id": None,
        },
    )


@dataclass
class FakeClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class FakeConversationRepo:
    """Reader and writer over the same in-memory rows."""

    db: FakeStore
    created: list[Conversation] = field(default_factory=list)

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        self.db.check_fetch()
        return self.db.conversation_rows.get(conversation_id)

    async def list_for_user(self, user_id: UUID) -> list[Conversation]:
        self.db.check_fetch()
        self.db.list_calls += 1
        mine = {m.conversation_id for m in self.db.membership_rows if m.user_id == user_id}
        rows = [c for cid, c in self.db.conversation_rows.items() if cid in mine]
        return sorted(rows, key=lambda c: c.created_at, reverse=True)

    async def find_direct(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        self.db.check_fetch()
        for conv in self.db.conversation_rows.values():
            if conv.is_group:
                continue
            members = {m.user_id for m in self.db.membership_rows if m.conversation_id == conv.id}
            if members == {user_a, user_b}:
                return conv
        return None

    async def create(self, conversation: Conversation) -> Conversation:
        self.db.check_persist("conversation")
        self.db.conversation_rows[conversation.id] = conversation
        self.created.append(conversation)
        return conversation


@dataclass
class FakeMembershipRepo:
    db: FakeStore
    last_read: dict[tuple[UUID, UUID], UUID] = field(default_factory=dict)
    muted: dict[tuple[UUID, UUID], bool] = field(default_factory=dict)

    async def get(self, conversation_id: UUID, user_id: UUID) -> Membership | None:
        self.db.check_fetch()
        for m in self.db.membership_rows:
            if m.conversation_id == conversation_id and m.user_id == user_id:
                return m
        return None

    async def add_many(self, memberships: list[Membership]) -> None:
        self.db.check_persist("membership")
        self.db.membership_rows.extend(memberships)

    async def set_last_read(self, conversation_id: UUID, user_id: UUID, message_id: UUID) -> None:
        self.db.check_persist("membership")
        self.last_read[(conversation_id, user_id)] = message_id

    async def set_muted(self, conversation_id: UUID, user_id: UUID, muted: bool) -> None:
        self.db.check_persist("membership")
        self.muted[(conversation_id, user_id)] = muted


@dataclass
class FakeMessageRepo:
    db: FakeStore
    created: list[Message] = field(default_factory=list)

    async def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        self.db.check_fetch()
        rows = [m for m in self.db.message_rows if m.conversation_id == conversation_id]
        return sorted(rows, key=lambda m: m.created_at)

    async def create(self, message: Message) -> None:
        self.db.check_persist("message")
        self.db.message_rows.append(message)
        self.created.append(message)


@dataclass
class FakeProfileRepo:
    db: FakeStore

    async def get_by_id(self, user_id: UUID) -> Profile | None:
        self.db.check_fetch()
        return self.db.profile_rows.get(user_id)

    async def search(self, term: str, *, exclude_user_id: UUID, limit: int = 5) -> list[Profile]:
        self.db.check_fetch()
        needle = term.lower()
        hits = [
            p for p in self.db.profile_rows.values()
            if p.id != exclude_user_id
            and any(needle in (v or "").lower() for v in (p.email, p.full_name, p.username))
        ]
        return hits[:limit]


class FakeStore:
    """In-memory DataStore.

    ``fail_fetch`` makes every read raise FetchError; ``fail_persist`` names
    the writer kinds ("conversation", "membership", "message") that raise
    PersistError.
    """

    def __init__(self) -> None:
        self.conversation_rows: dict[UUID, Conversation] = {}
        self.membership_rows: list[Membership] = []
        self.message_rows: list[Message] = []
        self.profile_rows: dict[UUID, Profile] = {}
        self.fail_fetch = False
        self.fail_persist: set[str] = set()
        self.list_calls = 0

        self.conversations = self.conversations_w = FakeConversationRepo(self)
        self.memberships = self.memberships_w = FakeMembershipRepo(self)
        self.messages = self.messages_w = FakeMessageRepo(self)
        self.profiles = FakeProfileRepo(self)

    def check_fetch(self) -> None:
        if self.fail_fetch:
            raise FetchError("store unavailable")

    def check_persist(self, kind: str) -> None:
        if kind in self.fail_persist:
            raise PersistError(f"{kind} insert failed")

    def add_profile(self, user_id: UUID, name: str | None = None) -> Profile:
        profile = make_profile(user_id, name)
        self.profile_rows[user_id] = profile
        return profile

    def add_conversation(self, conversation: Conversation, member_ids: list[UUID]) -> Conversation:
        self.conversation_rows[conversation.id] = conversation
        self.membership_rows.extend(make_membership(conversation.id, uid) for uid in member_ids)
        return conversation


@dataclass
class FakeSubscription:
    registry: list[Any]
    entry: Any
    closed: bool = False

    async def close(self) -> None:
        self.closed = True
        if self.entry in self.registry:
            self.registry.remove(self.entry)


@dataclass
class FakeChangeFeed:
    subscriptions: list[tuple[str, ChangeHandler, ColumnFilter | None]] = field(default_factory=list)

    async def subscribe(
        self,
        table: str,
        handler: ChangeHandler,
        *,
        filter: ColumnFilter | None = None,
    ) -> FakeSubscription:
        entry = (table, handler, filter)
        self.subscriptions.append(entry)
        return FakeSubscription(self.subscriptions, entry)

    async def emit(self, event: RowChanged) -> None:
        for table, handler, flt in list(self.subscriptions):
            if table == event.table and (flt is None or flt.matches(event)):
                await handler(event)


@dataclass
class FakeBroadcast:
    published: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)
    subscriptions: list[tuple[str, str, BroadcastHandler]] = field(default_factory=list)
    fail_publish: bool = False

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        if self.fail_publish:
            raise ConnectionError("redis down")
        self.published.append((topic, event, payload))

    async def subscribe(self, topic: str, event: str, handler: BroadcastHandler) -> FakeSubscription:
        entry = (topic, event, handler)
        self.subscriptions.append(entry)
        return FakeSubscription(self.subscriptions, entry)

    async def deliver(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        for t, e, handler in list(self.subscriptions):
            if t == topic and e == event:
                await handler(payload)


class Recorder:
    """Counts view-change notifications."""

    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1
