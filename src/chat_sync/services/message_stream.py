"""Ordered, deduplicated message view for one open conversation."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Coroutine
from uuid import UUID

from pydantic import ValidationError as PayloadError

from chat_sync.application.dto.message import MessageEntry, MessageRow
from chat_sync.application.dto.principal import Principal
from chat_sync.application.exceptions import FetchError, PersistError
from chat_sync.application.ports.clock import Clock, SystemClock
from chat_sync.application.ports.realtime import ChangeFeed, ColumnFilter, Subscription
from chat_sync.application.store import DataStore
from chat_sync.domain.entities.message import AuthorSummary, Message
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import ChangeType, DeliveryState, SyncStatus, Table

logger = logging.getLogger(__name__)

OnViewChange = Callable[[], Coroutine[Any, Any, None]]


class MessageStream:
    """Combines the history fetch, live inserts and optimistic local sends.

    Entries are keyed by message id, so the echo of a local send never
    produces a second entry. Once closed, every callback is a no-op.
    """

    def __init__(
        self,
        conversation_id: UUID,
        principal: Principal,
        store: DataStore,
        *,
        clock: Clock | None = None,
        on_change: OnViewChange | None = None,
    ) -> None:
        self.conversation_id = conversation_id
        self._principal = principal
        self._store = store
        self._clock = clock or SystemClock()
        self._on_change = on_change
        self._entries: list[MessageEntry] = []
        self._index: dict[UUID, MessageEntry] = {}
        self._subscription: Subscription | None = None
        self.status = SyncStatus.IDLE
        self.closed = False

    @property
    def entries(self) -> list[MessageEntry]:
        return list(self._entries)

    @property
    def messages(self) -> list[Message]:
        return [e.message for e in self._entries]

    def get(self, message_id: UUID) -> MessageEntry | None:
        return self._index.get(message_id)

    def last_confirmed(self) -> Message | None:
        for entry in reversed(self._entries):
            if entry.state == DeliveryState.CONFIRMED:
                return entry.message
        return None

    async def attach(self, change_feed: ChangeFeed) -> None:
        self._subscription = await change_feed.subscribe(
            Table.MESSAGES,
            self.on_remote_insert,
            filter=ColumnFilter("conversation_id", self.conversation_id),
        )

    async def close(self) -> None:
        self.closed = True
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()

    async def load_history(self) -> None:
        """Replace the sequence with the persisted history.

        Entries applied locally that the fetch did not return yet (pending
        sends, live inserts racing the fetch) are kept after the history.
        """
        self.status = SyncStatus.LOADING
        try:
            history = await self._store.messages.list_for_conversation(self.conversation_id)
        except FetchError:
            if self.closed:
                raise
            logger.warning("History fetch failed for conversation=%s", self.conversation_id)
            self._replace([])
            self.status = SyncStatus.FAILED
            await self._notify()
            raise
        if self.closed:
            return

        fetched = {m.id for m in history}
        carried = [e for e in self._entries if e.id not in fetched]
        self._replace(
            [MessageEntry(m, DeliveryState.CONFIRMED) for m in history] + carried
        )
        self.status = SyncStatus.READY
        await self._notify()

    async def on_remote_insert(self, event: RowChanged) -> None:
        if self.closed or event.type != ChangeType.INSERT:
            return
        try:
            row = MessageRow.model_validate(event.new)
        except PayloadError:
            logger.warning("Dropping malformed message payload: %s", event.new)
            return
        if row.conversation_id != self.conversation_id:
            return
        if self._confirm_existing(row.id):
            await self._notify()
            return
        if row.id in self._index:
            return

        author = await self._resolve_author(row.user_id)

        # State may have moved on while the author lookup was in flight.
        if self.closed:
            return
        if row.id in self._index:
            if self._confirm_existing(row.id):
                await self._notify()
            return
        self._append(MessageEntry(row.to_entity(author), DeliveryState.CONFIRMED))
        await self._notify()

    async def send_message(self, text: str) -> Message | None:
        """Apply a message locally, then persist it.

        Returns None without side effects for blank text. On PersistError the
        optimistic entry (and only it) is removed and the error re-raised.
        """
        if not text.strip() or self.closed:
            return None

        message = Message(
            id=uuid.uuid4(),
            conversation_id=self.conversation_id,
            user_id=self._principal.user_id,
            content=text,
            created_at=self._clock.now(),
        )
        self._append(MessageEntry(message, DeliveryState.PENDING))
        await self._notify()

        try:
            await self._store.messages_w.create(message)
        except PersistError:
            logger.warning(
                "Send failed, rolling back message=%s conversation=%s",
                message.id, self.conversation_id,
            )
            self._remove(message.id)
            await self._notify()
            raise

        if self._confirm_existing(message.id):
            await self._notify()
        return message

    async def _resolve_author(self, user_id: UUID) -> AuthorSummary | None:
        try:
            profile = await self._store.profiles.get_by_id(user_id)
        except FetchError:
            logger.warning("Author lookup failed for user=%s", user_id)
            return None
        return profile.to_author() if profile else None

    def _confirm_existing(self, message_id: UUID) -> bool:
        entry = self._index.get(message_id)
        return entry is not None and entry.confirm()

    def _append(self, entry: MessageEntry) -> None:
        self._entries.append(entry)
        self._index[entry.id] = entry

    def _remove(self, message_id: UUID) -> None:
        entry = self._index.pop(message_id, None)
        if entry is not None:
            self._entries = [e for e in self._entries if e is not entry]

    def _replace(self, entries: list[MessageEntry]) -> None:
        self._entries = entries
        self._index = {e.id: e for e in entries}

    async def _notify(self) -> None:
        if self._on_change is not None and not self.closed:
            await self._on_change()
