from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from chat_sync.domain.events.row_changed import RowChanged
from chat_sync.domain.value_objects.enums import ChangeType


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def serialize_event(event_type: str, payload: dict[str, Any]) -> str:
    envelope = {"event": event_type, "data": payload}
    return json.dumps(envelope, cls=_Encoder)


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    data = json.loads(raw)
    return data["event"], data["data"]


def change_to_payload(event: RowChanged) -> dict[str, Any]:
    return {
        "table": event.table,
        "type": event.type.value,
        "new": event.new,
        "old": event.old,
    }


def change_from_payload(data: dict[str, Any]) -> RowChanged:
    return RowChanged(
        table=data["table"],
        type=ChangeType(data["type"]),
        new=data.get("new") or {},
        old=data.get("old") or {},
    )
