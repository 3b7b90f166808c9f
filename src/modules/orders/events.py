"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status actually changes.

    Serialized as the payload of the per-channel outbox rows.
    """

    store_id: UUID
    old_status: Optional[str]
    new_status: str
    changed_by: Optional[UUID] = None
