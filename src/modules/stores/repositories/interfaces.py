"""Store repository interface.

Besides the store aggregate itself, the contract covers the two child
collections the status pipeline reads: status configs (templates and the
permission catalogue) and employees (authorization).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.constants import OrderStatus
    from modules.stores.models import OrderStatusConfig, Store, StoreEmployee


class IStoreRepository(IRepository["Store"]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Store]:
        """Retrieve a live (not soft-deleted) store."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Store]:
        """List live stores."""

    @abstractmethod
    def get_employee(self, store_id: UUID, user_id: UUID) -> Optional[StoreEmployee]:
        """Employee record of *user_id* in *store_id*, active or not."""

    @abstractmethod
    def list_employees(self, store_id: UUID) -> List[StoreEmployee]:
        """All employees of a store."""

    @abstractmethod
    def list_status_configs(
        self, store_id: UUID, active_only: bool = True
    ) -> List[OrderStatusConfig]:
        """Status configs of a store in display order."""

    @abstractmethod
    def get_status_config(
        self, store_id: UUID, status: OrderStatus
    ) -> Optional[OrderStatusConfig]:
        """Config for one status, active or not."""

    @abstractmethod
    def list_accessible_store_ids(self, user_id: UUID) -> List[UUID]:
        """Stores the user owns or works at as an active employee."""
