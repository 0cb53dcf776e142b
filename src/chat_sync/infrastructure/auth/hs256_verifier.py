from __future__ import annotations

import logging
from uuid import UUID

import jwt

from chat_sync.application.dto.principal import Principal

logger = logging.getLogger(__name__)


class HS256Verifier:
    """Resolve the session from a JWT signed with a shared HS256 secret.

    ``sub`` carries the user id; an absent, expired or forged token means
    there is no session.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", audience: str | None = None) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    async def lookup(self, token: str | None) -> Principal | None:
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
            user_id = UUID(str(payload["sub"]))
        except (jwt.PyJWTError, KeyError, ValueError) as exc:
            logger.debug("Rejected session token: %s", exc)
            return None
        return Principal(user_id=user_id, email=payload.get("email"))
