from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chat_sync.domain.value_objects.enums import ChangeType


@dataclass(frozen=True, slots=True)
class RowChanged:
    """A row-level change notification delivered by the change feed.

    ``new`` and ``old`` carry raw column values only (JSON-safe), never
    joined relations.
    """

    table: str
    type: ChangeType
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)

    @property
    def event_type(self) -> str:
        return f"{self.table}.{self.type}"
