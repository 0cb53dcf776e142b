from __future__ import annotations

from typing import Protocol

from chat_sync.application.dto.principal import Principal


class SessionVerifier(Protocol):
    async def lookup(self, token: str | None) -> Principal | None:
        """Return the session's principal, or None when there is no valid session."""
        ...
