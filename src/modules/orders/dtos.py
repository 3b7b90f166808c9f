"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ChangeOrderStatusDTO``: input of the status-change endpoint.
- ``StatusChangeResultDTO``: the ``data`` object returned on success.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.orders.models import Order


class ChangeOrderStatusDTO(BaseModel):
    """Immutable DTO for a status change request.

    ``status`` is kept raw: the normalizer in the service decides whether
    it names a known status.
    """

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    status: str
    skip_notification: bool = False
    notes: str = ""

    @field_validator("status")
    @classmethod
    def status_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Status is required.")
        return v


class StatusChangeResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    status: str
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> StatusChangeResultDTO:
        return cls(id=order.id, status=order.status, updated_at=order.updated_at)
