"""Row-change events published to dashboards."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from shared.domain.events import DomainEvent

INSERT = "INSERT"
UPDATE = "UPDATE"


def channel_for_store(store_id: Any) -> str:
    return f"realtime:store:{store_id}"


@dataclass(frozen=True, kw_only=True)
class RowChange(DomainEvent):
    """A row of ``table`` was inserted or updated.

    ``aggregate_id`` is the row id.  Dashboards only use the event to
    decide when to refetch, so no row data travels with it.
    """

    table: str
    event_type: str
    store_id: UUID

    @property
    def channel(self) -> str:
        return channel_for_store(self.store_id)

    def to_message(self) -> str:
        payload = self.to_payload()
        payload.pop("event_name", None)
        payload["record_id"] = payload.pop("aggregate_id")
        return json.dumps(payload)

    @classmethod
    def from_message(cls, raw: str | bytes | Dict[str, Any]) -> RowChange:
        data = raw if isinstance(raw, dict) else json.loads(raw)
        return cls(
            aggregate_id=UUID(str(data["record_id"])),
            event_id=UUID(str(data["event_id"])),
            occurred_on=datetime.fromisoformat(data["occurred_on"]),
            table=data["table"],
            event_type=data["event_type"],
            store_id=UUID(str(data["store_id"])),
        )
