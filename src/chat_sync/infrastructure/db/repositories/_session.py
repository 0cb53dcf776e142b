"""Session scopes that translate store failures into application errors."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_sync.application.exceptions import ConflictError, FetchError, PersistError

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


@asynccontextmanager
async def reading(sessions: SessionFactory, what: str) -> AsyncIterator[AsyncSession]:
    try:
        async with sessions() as session:
            yield session
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Read of %s failed: %s", what, exc)
        raise FetchError(f"Failed to load {what}") from exc


@asynccontextmanager
async def writing(sessions: SessionFactory, what: str) -> AsyncIterator[AsyncSession]:
    """Yield a session and commit it on clean exit."""
    try:
        async with sessions() as session:
            yield session
            await session.commit()
    except IntegrityError as exc:
        logger.warning("Write of %s rejected: %s", what, exc.orig)
        raise ConflictError(f"Conflicting {what}") from exc
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Write of %s failed: %s", what, exc)
        raise PersistError(f"Failed to save {what}") from exc
