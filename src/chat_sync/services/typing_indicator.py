"""Ephemeral "is typing" signal for the open conversation."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, Coroutine
from uuid import UUID

from pydantic import ValidationError as PayloadError

from chat_sync.application.dto.principal import Principal
from chat_sync.application.dto.typing import TypingPayload
from chat_sync.application.ports.clock import Clock, SystemClock
from chat_sync.application.ports.realtime import BroadcastChannel, Subscription
from chat_sync.domain.entities.typing_signal import TypingSignal

logger = logging.getLogger(__name__)

TYPING_EVENT = "typing"
TYPING_TTL = timedelta(seconds=2)
SWEEP_INTERVAL_SECONDS = 0.25

OnViewChange = Callable[[], Coroutine[Any, Any, None]]


def typing_topic(conversation_id: UUID) -> str:
    return f"typing:{conversation_id}"


class TypingIndicator:
    """Tracks remote typers as expiry instants.

    Every received event pushes that user's expiry to ``now + ttl``; a
    background sweeper drops expired users and notifies listeners.
    """

    def __init__(
        self,
        conversation_id: UUID,
        principal: Principal,
        broadcast: BroadcastChannel,
        *,
        clock: Clock | None = None,
        ttl: timedelta = TYPING_TTL,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        on_change: OnViewChange | None = None,
    ) -> None:
        self.conversation_id = conversation_id
        self._principal = principal
        self._broadcast = broadcast
        self._clock = clock or SystemClock()
        self._ttl = ttl
        self._sweep_interval = sweep_interval
        self._on_change = on_change
        self._signals: dict[UUID, TypingSignal] = {}
        self._subscription: Subscription | None = None
        self._sweeper_task: asyncio.Task[None] | None = None
        self.closed = False

    @property
    def topic(self) -> str:
        return typing_topic(self.conversation_id)

    def active_typers(self) -> list[UUID]:
        now = self._clock.now()
        return [uid for uid, s in self._signals.items() if s.expires_at > now]

    def signals(self) -> list[TypingSignal]:
        now = self._clock.now()
        return [s for s in self._signals.values() if s.expires_at > now]

    async def attach(self) -> None:
        self._subscription = await self._broadcast.subscribe(
            self.topic, TYPING_EVENT, self.on_typing_event,
        )
        self._sweeper_task = asyncio.create_task(
            self._sweep_loop(), name=f"typing-sweeper-{self.conversation_id}",
        )

    async def close(self) -> None:
        self.closed = True
        self._signals.clear()
        if self._sweeper_task is not None:
            self._sweeper_task.cancel()
            try:
                await self._sweeper_task
            except asyncio.CancelledError:
                pass
            self._sweeper_task = None
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()

    async def publish_typing(self) -> None:
        if self.closed:
            return
        try:
            await self._broadcast.publish(
                self.topic, TYPING_EVENT, {"user_id": str(self._principal.user_id)},
            )
        except Exception:
            logger.debug("Typing broadcast failed on %s", self.topic, exc_info=True)

    async def on_typing_event(self, payload: dict[str, Any]) -> None:
        if self.closed:
            return
        try:
            user_id = TypingPayload.model_validate(payload).user_id
        except PayloadError:
            logger.debug("Ignoring malformed typing payload: %s", payload)
            return
        if user_id == self._principal.user_id:
            return

        now = self._clock.now()
        was_typing = user_id in self.active_typers()
        self._signals[user_id] = TypingSignal(
            user_id=user_id,
            conversation_id=self.conversation_id,
            expires_at=now + self._ttl,
        )
        if not was_typing:
            await self._notify()

    def sweep(self) -> bool:
        """Drop expired signals. Returns True if any were removed."""
        now = self._clock.now()
        expired = [uid for uid, s in self._signals.items() if s.expires_at <= now]
        for uid in expired:
            del self._signals[uid]
        return bool(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                if self.sweep():
                    await self._notify()
            except Exception:
                logger.exception("Typing sweeper error on %s", self.topic)

    async def _notify(self) -> None:
        if self._on_change is not None and not self.closed:
            await self._on_change()
