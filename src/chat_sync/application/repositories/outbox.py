from __future__ import annotations

from datetime import datetime
from typing import Protocol

from chat_sync.domain.events.row_changed import RowChanged


class OutboxRecord:
    """Pending change-feed notification awaiting publication."""

    __slots__ = ("id", "event", "attempts")

    def __init__(self, id: int, event: RowChanged, attempts: int) -> None:
        self.id = id
        self.event = event
        self.attempts = attempts


class OutboxWriter(Protocol):
    async def add_change(self, event: RowChanged) -> None: ...


class OutboxReader(Protocol):
    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]: ...

    async def mark_sent(self, ids: list[int]) -> None: ...

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None: ...
