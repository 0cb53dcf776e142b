from __future__ import annotations

from enum import StrEnum


class ChangeType(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class DeliveryState(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class SyncStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Table(StrEnum):
    CONVERSATIONS = "conversations"
    MEMBERSHIPS = "user_conversations"
    MESSAGES = "messages"
