"""Change-feed publisher: drains outbox rows into per-table Redis channels."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import redis.asyncio as aioredis

from chat_sync.config import settings
from chat_sync.infrastructure.bus.redis_pubsub import RedisChangeFeed
from chat_sync.infrastructure.db.repositories.outbox import OutboxRepo
from chat_sync.infrastructure.db.session import AsyncSessionLocal, dispose_engine

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 300


def _calc_backoff(attempts: int) -> datetime:
    delay = min(BASE_DELAY_SECONDS * (2 ** attempts), MAX_DELAY_SECONDS)
    return datetime.now(timezone.utc) + timedelta(seconds=delay)


async def run_outbox_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    feed = RedisChangeFeed(redis, settings.CHANGE_FEED_CHANNEL_PREFIX)

    logger.info(
        "Outbox worker started (poll=%.1fs, batch=%d, max_attempts=%d)",
        settings.OUTBOX_POLL_INTERVAL,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_ATTEMPTS,
    )

    try:
        while True:
            try:
                await _process_batch(feed)
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await redis.aclose()
        await dispose_engine()


async def _process_batch(feed: RedisChangeFeed) -> None:
    async with AsyncSessionLocal() as session:
        outbox = OutboxRepo(session)
        batch = await outbox.fetch_pending(settings.OUTBOX_BATCH_SIZE)
        if not batch:
            return

        sent_ids: list[int] = []
        for record in batch:
            if record.attempts >= settings.OUTBOX_MAX_ATTEMPTS:
                logger.warning("Outbox record %d exceeded max attempts, skipping", record.id)
                continue
            try:
                await feed.publish(record.event)
                sent_ids.append(record.id)
            except Exception:
                logger.exception("Failed to publish outbox record %d", record.id)
                await outbox.mark_failed(record.id, _calc_backoff(record.attempts))

        if sent_ids:
            await outbox.mark_sent(sent_ids)

        await session.commit()
        if sent_ids:
            logger.info("Published %d row changes", len(sent_ids))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
