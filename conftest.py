"""Root conftest: test environment is fixed before ``chat_sync.config`` loads."""
from __future__ import annotations

import os
from pathlib import Path

TEST_DEFAULTS = {
    "JWT_SECRET": "chat-sync-test-secret-0123456789abcdef",
    "LOGIN_URL": "/login",
    "WS_HEARTBEAT_SECONDS": "3600",
}

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for line in _env_test.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())

for key, value in TEST_DEFAULTS.items():
    os.environ.setdefault(key, value)
