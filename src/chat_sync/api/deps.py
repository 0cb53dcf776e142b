"""FastAPI dependency injection helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection

from chat_sync.application.dto.principal import Principal
from chat_sync.application.policies.permissions import assert_authenticated
from chat_sync.application.ports.auth import SessionVerifier
from chat_sync.application.ports.realtime import BroadcastChannel, ChangeFeed
from chat_sync.application.store import DataStore
from chat_sync.config import settings
from chat_sync.infrastructure.auth.hs256_verifier import HS256Verifier
from chat_sync.infrastructure.bus.redis_pubsub import RedisBroadcastChannel, RedisChangeFeed
from chat_sync.infrastructure.db.session import AsyncSessionLocal
from chat_sync.infrastructure.db.store import SqlAlchemyStore

_bearer_scheme = HTTPBearer(auto_error=False)

_store: SqlAlchemyStore | None = None
_verifier: SessionVerifier | None = None


def get_store() -> DataStore:
    global _store  # noqa: PLW0603
    if _store is None:
        _store = SqlAlchemyStore(AsyncSessionLocal)
    return _store


StoreDep = Annotated[DataStore, Depends(get_store)]


def get_verifier() -> SessionVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(
            settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_AUDIENCE,
        )
    return _verifier


VerifierDep = Annotated[SessionVerifier, Depends(get_verifier)]


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    verifier: VerifierDep,
) -> Principal:
    token = credentials.credentials if credentials else None
    return assert_authenticated(await verifier.lookup(token))


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


@dataclass(frozen=True, slots=True)
class Realtime:
    change_feed: ChangeFeed
    broadcast: BroadcastChannel


def get_realtime(connection: HTTPConnection) -> Realtime:
    redis = connection.app.state.redis
    return Realtime(
        change_feed=RedisChangeFeed(redis, settings.CHANGE_FEED_CHANNEL_PREFIX),
        broadcast=RedisBroadcastChannel(redis, settings.BROADCAST_CHANNEL_PREFIX),
    )


RealtimeDep = Annotated[Realtime, Depends(get_realtime)]
