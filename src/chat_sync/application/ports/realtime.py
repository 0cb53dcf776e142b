from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Protocol

from chat_sync.domain.events.row_changed import RowChanged

ChangeHandler = Callable[[RowChanged], Coroutine[Any, Any, None]]
BroadcastHandler = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]


@dataclass(frozen=True, slots=True)
class ColumnFilter:
    """Equality filter on one column of the changed row."""

    column: str
    value: Any

    def matches(self, event: RowChanged) -> bool:
        row = event.new or event.old
        return str(row.get(self.column)) == str(self.value)


class Subscription(Protocol):
    async def close(self) -> None: ...


class ChangeFeed(Protocol):
    async def subscribe(
        self,
        table: str,
        handler: ChangeHandler,
        *,
        filter: ColumnFilter | None = None,
    ) -> Subscription:
        """Deliver insert/update/delete events on ``table``, at least once."""
        ...


class BroadcastChannel(Protocol):
    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        """Fire-and-forget; no persistence, no delivery guarantee."""
        ...

    async def subscribe(
        self, topic: str, event: str, handler: BroadcastHandler,
    ) -> Subscription: ...
