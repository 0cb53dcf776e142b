from __future__ import annotations

import time
import uuid

import jwt
import pytest

from chat_sync.infrastructure.auth.hs256_verifier import HS256Verifier

SECRET = "test-secret-that-is-at-least-32-bytes-long"


def _token(claims: dict, secret: str = SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.mark.asyncio
async def test_valid_token_yields_principal():
    user_id = uuid.uuid4()
    verifier = HS256Verifier(SECRET)

    principal = await verifier.lookup(_token({"sub": str(user_id), "email": "a@example.com"}))

    assert principal is not None
    assert principal.user_id == user_id
    assert principal.email == "a@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token",
    [
        None,
        "",
        "garbage",
        _token({"sub": str(uuid.uuid4())}, secret="another-secret-of-sufficient-length-xx"),
        _token({"sub": str(uuid.uuid4()), "exp": int(time.time()) - 60}),
        _token({"sub": "42"}),
        _token({"email": "nosub@example.com"}),
    ],
)
async def test_invalid_tokens_mean_no_session(token):
    assert await HS256Verifier(SECRET).lookup(token) is None


@pytest.mark.asyncio
async def test_audience_is_enforced_when_configured():
    sub = str(uuid.uuid4())
    verifier = HS256Verifier(SECRET, audience="chat")

    assert await verifier.lookup(_token({"sub": sub, "aud": "chat"})) is not None
    assert await verifier.lookup(_token({"sub": sub, "aud": "billing"})) is None
