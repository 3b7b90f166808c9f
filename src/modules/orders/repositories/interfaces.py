"""Order repository interface.

Extends ``IRepository[Order]`` with the locked read and the status write
the transition committer needs.  The Service Layer depends exclusively on
this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.constants import OrderStatus
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with items and history prefetched."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List live orders with optional filters."""

    @abstractmethod
    def list_for_stores(self, store_ids: Iterable[UUID]) -> Any:
        """Queryset of live orders belonging to *store_ids*."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve a live order holding a row-level lock."""

    @abstractmethod
    def update_status(
        self,
        order: Order,
        status: OrderStatus,
        *,
        changed_by: Optional[UUID] = None,
        notes: str = "",
        skip_notification: bool = False,
    ) -> Order:
        """Write the new status, suppressing notifications when asked."""
