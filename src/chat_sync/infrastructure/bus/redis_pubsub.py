"""Redis Pub/Sub adapters for the change feed and broadcast channels."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from chat_sync.application.ports.realtime import (
    BroadcastHandler,
    ChangeHandler,
    ColumnFilter,
)
from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.infrastructure.bus.serializer import (
    change_from_payload,
    change_to_payload,
    deserialize_event,
    serialize_event,
)

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, event_type: str, payload: dict[str, Any]) -> None:
        await self._redis.publish(channel, serialize_event(event_type, payload))


OnEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisPubSubSubscriber:
    """Background task that listens to one Redis channel and dispatches events.

    The channel subscription is registered before ``start`` returns, so no
    message published afterwards is missed.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnEventCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._pubsub: Any = None
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(self._channel)
        self._task = asyncio.create_task(
            self._listen(), name=f"redis-pubsub-{self._channel}",
        )
        logger.debug("Subscribed to channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._pubsub is not None:
            pubsub, self._pubsub = self._pubsub, None
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
            logger.debug("Unsubscribed from channel=%s", self._channel)

    async def close(self) -> None:
        await self.stop()

    async def _listen(self) -> None:
        async for message in self._pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                event_type, data = deserialize_event(message["data"])
                await self._callback(event_type, data)
            except Exception:
                logger.exception("Error processing message on channel=%s", self._channel)


def change_channel(prefix: str, table: str) -> str:
    return f"{prefix}:{table}"


def broadcast_channel(prefix: str, topic: str) -> str:
    return f"{prefix}:{topic}"


class RedisChangeFeed:
    """Implements application.ports.realtime.ChangeFeed.

    One Redis channel per table; column filters are applied on receipt.
    """

    def __init__(self, redis: aioredis.Redis, prefix: str = "changes") -> None:
        self._redis = redis
        self._prefix = prefix

    async def publish(self, event: RowChanged) -> None:
        await RedisPubSubPublisher(self._redis).publish(
            change_channel(self._prefix, event.table),
            event.event_type,
            change_to_payload(event),
        )

    async def subscribe(
        self,
        table: str,
        handler: ChangeHandler,
        *,
        filter: ColumnFilter | None = None,
    ) -> RedisPubSubSubscriber:
        async def dispatch(_event_type: str, data: dict[str, Any]) -> None:
            event = change_from_payload(data)
            if event.table != table:
                return
            if filter is not None and not filter.matches(event):
                return
            await handler(event)

        subscriber = RedisPubSubSubscriber(
            self._redis, change_channel(self._prefix, table), dispatch,
        )
        await subscriber.start()
        return subscriber


class RedisBroadcastChannel:
    """Implements application.ports.realtime.BroadcastChannel."""

    def __init__(self, redis: aioredis.Redis, prefix: str = "broadcast") -> None:
        self._redis = redis
        self._prefix = prefix

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        await RedisPubSubPublisher(self._redis).publish(
            broadcast_channel(self._prefix, topic), event, payload,
        )

    async def subscribe(
        self, topic: str, event: str, handler: BroadcastHandler,
    ) -> RedisPubSubSubscriber:
        async def dispatch(event_type: str, data: dict[str, Any]) -> None:
            if event_type == event:
                await handler(data)

        subscriber = RedisPubSubSubscriber(
            self._redis, broadcast_channel(self._prefix, topic), dispatch,
        )
        await subscriber.start()
        return subscriber
