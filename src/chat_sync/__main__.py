"""Entrypoint: python -m chat_sync"""
from __future__ import annotations

import uvicorn

from chat_sync.config import settings


def main() -> None:
    uvicorn.run(
        "chat_sync.app:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
