"""Conversation list kept current by full re-query on any conversation change."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Coroutine

from chat_sync.application.dto.principal import Principal
from chat_sync.application.exceptions import FetchError, PersistError, ValidationError
from chat_sync.application.ports.clock import Clock, SystemClock
from chat_sync.application.ports.realtime import ChangeFeed, Subscription
from chat_sync.application.store import DataStore
from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.membership import Membership
from chat_sync.domain.entities.profile import Profile
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import SyncStatus, Table

logger = logging.getLogger(__name__)

OnViewChange = Callable[[], Coroutine[Any, Any, None]]


class ConversationList:
    def __init__(
        self,
        principal: Principal,
        store: DataStore,
        *,
        clock: Clock | None = None,
        on_change: OnViewChange | None = None,
    ) -> None:
        self._principal = principal
        self._store = store
        self._clock = clock or SystemClock()
        self._on_change = on_change
        self._conversations: list[Conversation] = []
        self._generation = 0
        self._subscription: Subscription | None = None
        self.status = SyncStatus.IDLE

    @property
    def conversations(self) -> list[Conversation]:
        return list(self._conversations)

    def filter(self, term: str) -> list[Conversation]:
        needle = term.strip().lower()
        return [c for c in self._conversations if needle in c.name.lower()]

    async def attach(self, change_feed: ChangeFeed) -> None:
        # Unfiltered: membership scoping happens in the re-query.
        self._subscription = await change_feed.subscribe(
            Table.CONVERSATIONS, self.on_any_conversation_change,
        )

    async def close(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()

    async def refresh(self) -> list[Conversation]:
        """Re-run the membership-scoped query and replace the whole list.

        A result that lands after a newer refresh was issued is discarded.
        """
        self._generation += 1
        generation = self._generation
        self.status = SyncStatus.LOADING
        try:
            conversations = await self._store.conversations.list_for_user(
                self._principal.user_id,
            )
        except FetchError:
            if generation == self._generation:
                self._conversations = []
                self.status = SyncStatus.FAILED
                await self._notify()
            raise

        if generation != self._generation:
            logger.debug("Discarding superseded conversation refresh #%d", generation)
            return self.conversations

        self._conversations = conversations
        self.status = SyncStatus.READY
        await self._notify()
        return self.conversations

    async def on_any_conversation_change(self, event: RowChanged) -> None:
        try:
            await self.refresh()
        except FetchError:
            logger.warning("Conversation refresh after %s failed", event.event_type)

    def validate_direct(self, user_id: uuid.UUID | None) -> uuid.UUID:
        if user_id is None:
            raise ValidationError("Please select at least one user")
        if user_id == self._principal.user_id:
            raise ValidationError("Cannot start a conversation with yourself")
        return user_id

    def validate_group(self, name: str, member_ids: list[uuid.UUID]) -> list[uuid.UUID]:
        """Checks that need no store access. Returns the distinct other members."""
        me = self._principal.user_id
        others = list(dict.fromkeys(uid for uid in member_ids if uid != me))
        if not others:
            raise ValidationError("Please select at least one user")
        if not name.strip():
            raise ValidationError("Please enter a group name")
        return others

    async def create_direct(self, other: Profile | None) -> Conversation:
        conversation, _ = await self.get_or_create_direct(other)
        return conversation

    async def get_or_create_direct(self, other: Profile | None) -> tuple[Conversation, bool]:
        """Returns the conversation and whether it was created by this call."""
        me = self._principal.user_id
        other_id = self.validate_direct(other.id if other is not None else None)

        existing = await self._store.conversations.find_direct(me, other_id)
        if existing is not None:
            return existing, False

        conversation = Conversation(
            id=uuid.uuid4(),
            name=other.display_name,
            is_group=False,
            created_at=self._clock.now(),
            created_by=me,
        )
        return await self._create(conversation, [(me, False), (other_id, False)]), True

    async def create_group(self, name: str, members: list[Profile]) -> Conversation:
        me = self._principal.user_id
        by_id = {p.id: p for p in members}
        others = [by_id[uid] for uid in self.validate_group(name, list(by_id))]

        conversation = Conversation(
            id=uuid.uuid4(),
            name=name.strip(),
            is_group=True,
            created_at=self._clock.now(),
            created_by=me,
        )
        participants = [(me, True)] + [(p.id, False) for p in others]
        return await self._create(conversation, participants)

    async def _create(
        self,
        conversation: Conversation,
        participants: list[tuple[uuid.UUID, bool]],
    ) -> Conversation:
        conversation = await self._store.conversations_w.create(conversation)

        now = self._clock.now()
        memberships = [
            Membership(
                id=uuid.uuid4(),
                user_id=user_id,
                conversation_id=conversation.id,
                is_admin=is_admin,
                is_muted=False,
                last_read_message_id=None,
                created_at=now,
            )
            for user_id, is_admin in participants
        ]
        try:
            await self._store.memberships_w.add_many(memberships)
        except PersistError:
            # No compensation: without membership rows the conversation is
            # invisible to everyone.
            logger.error(
                "Orphaned conversation=%s: membership insert failed", conversation.id,
            )
            raise

        logger.info(
            "Created %s conversation=%s with %d members",
            "group" if conversation.is_group else "direct",
            conversation.id,
            len(memberships),
        )
        try:
            await self.refresh()
        except FetchError:
            logger.warning("Refresh after creating conversation=%s failed", conversation.id)
        return conversation

    async def _notify(self) -> None:
        if self._on_change is not None:
            await self._on_change()
