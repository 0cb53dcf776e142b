"""Per-user session wiring the list, the open stream and its typing signal."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable, Coroutine
from uuid import UUID

from chat_sync.application.dto.principal import Principal
from chat_sync.application.exceptions import ValidationError
from chat_sync.application.policies.permissions import assert_conversation_access
from chat_sync.application.ports.clock import Clock, SystemClock
from chat_sync.application.ports.realtime import BroadcastChannel, ChangeFeed
from chat_sync.application.store import DataStore
from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.message import Message
from chat_sync.services.conversation_list import ConversationList
from chat_sync.services.message_stream import MessageStream
from chat_sync.services.profile_service import get_profiles
from chat_sync.services.typing_indicator import (
    SWEEP_INTERVAL_SECONDS,
    TYPING_TTL,
    TypingIndicator,
)

logger = logging.getLogger(__name__)

OnSessionChange = Callable[[str], Coroutine[Any, Any, None]]

TOPIC_CONVERSATIONS = "conversations"
TOPIC_MESSAGES = "messages"
TOPIC_TYPING = "typing"
TOPIC_NAVIGATE = "navigate"


class ChatSession:
    """At most one conversation is open; opening another tears the old one down."""

    def __init__(
        self,
        principal: Principal,
        store: DataStore,
        change_feed: ChangeFeed,
        broadcast: BroadcastChannel,
        *,
        clock: Clock | None = None,
        typing_ttl: timedelta = TYPING_TTL,
        typing_sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        on_change: OnSessionChange | None = None,
    ) -> None:
        self.principal = principal
        self._store = store
        self._change_feed = change_feed
        self._broadcast = broadcast
        self._clock = clock or SystemClock()
        self._typing_ttl = typing_ttl
        self._typing_sweep_interval = typing_sweep_interval
        self._on_change = on_change
        self.conversations = ConversationList(
            principal, store, clock=self._clock,
            on_change=self._emitter(TOPIC_CONVERSATIONS),
        )
        self.stream: MessageStream | None = None
        self.typing: TypingIndicator | None = None

    @property
    def active_conversation_id(self) -> UUID | None:
        return self.stream.conversation_id if self.stream else None

    async def start(self) -> None:
        await self.conversations.attach(self._change_feed)
        await self.conversations.refresh()

    async def close(self) -> None:
        await self._teardown()
        await self.conversations.close()

    async def open_conversation(self, conversation_id: UUID) -> MessageStream:
        await assert_conversation_access(
            self.principal, conversation_id,
            self._store.conversations, self._store.memberships,
        )

        await self._teardown()
        stream = MessageStream(
            conversation_id, self.principal, self._store,
            clock=self._clock, on_change=self._scoped(conversation_id, TOPIC_MESSAGES),
        )
        typing = TypingIndicator(
            conversation_id, self.principal, self._broadcast,
            clock=self._clock,
            ttl=self._typing_ttl,
            sweep_interval=self._typing_sweep_interval,
            on_change=self._scoped(conversation_id, TOPIC_TYPING),
        )
        self.stream, self.typing = stream, typing
        logger.debug("Opened conversation=%s for %s", conversation_id, self.principal.principal_key)
        await self._emit(TOPIC_NAVIGATE)

        await stream.attach(self._change_feed)
        if self.stream is not stream:
            await stream.close()
            return stream
        await typing.attach()
        if self.typing is not typing:
            await typing.close()
            return stream
        await stream.load_history()
        return stream

    async def send_message(self, text: str) -> Message | None:
        if self.stream is None:
            return None
        return await self.stream.send_message(text)

    async def publish_typing(self) -> None:
        if self.typing is not None:
            await self.typing.publish_typing()

    async def mark_read(self) -> UUID | None:
        """Point the membership's read marker at the newest confirmed message."""
        if self.stream is None:
            return None
        last = self.stream.last_confirmed()
        if last is None:
            return None
        await self._store.memberships_w.set_last_read(
            self.stream.conversation_id, self.principal.user_id, last.id,
        )
        return last.id

    async def set_muted(self, muted: bool) -> None:
        if self.stream is None:
            raise ValidationError("No conversation is open")
        await self._store.memberships_w.set_muted(
            self.stream.conversation_id, self.principal.user_id, muted,
        )

    async def create_direct(self, user_id: UUID) -> Conversation:
        self.conversations.validate_direct(user_id)
        [other] = await get_profiles(self._store, [user_id])
        conversation = await self.conversations.create_direct(other)
        await self.open_conversation(conversation.id)
        return conversation

    async def create_group(self, name: str, member_ids: list[UUID]) -> Conversation:
        member_ids = self.conversations.validate_group(name, member_ids)
        members = await get_profiles(self._store, member_ids)
        conversation = await self.conversations.create_group(name, members)
        await self.open_conversation(conversation.id)
        return conversation

    async def _teardown(self) -> None:
        stream, typing = self.stream, self.typing
        self.stream = self.typing = None
        if stream is not None:
            await stream.close()
        if typing is not None:
            await typing.close()

    def _emitter(self, topic: str) -> Callable[[], Coroutine[Any, Any, None]]:
        async def emit() -> None:
            await self._emit(topic)

        return emit

    def _scoped(self, conversation_id: UUID, topic: str) -> Callable[[], Coroutine[Any, Any, None]]:
        async def emit() -> None:
            if self.active_conversation_id == conversation_id:
                await self._emit(topic)

        return emit

    async def _emit(self, topic: str) -> None:
        if self._on_change is not None:
            await self._on_change(topic)
