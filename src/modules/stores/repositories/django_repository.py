"""Django ORM implementation of the Store repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.orders.constants import OrderStatus
from modules.stores.models import OrderStatusConfig, Store, StoreEmployee
from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StoreDjangoRepository(IStoreRepository):
    """Concrete Store repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Store]:
        try:
            return Store.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Store]:
        queryset = Store.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Store) -> Store:
        entity.save()
        logger.info("store.saved", store_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        store = self.get_by_id(id)
        if not store:
            return False
        store.delete()
        logger.info("store.soft_deleted", store_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    def get_employee(self, store_id: UUID, user_id: UUID) -> Optional[StoreEmployee]:
        return StoreEmployee.objects.filter(store_id=store_id, user_id=user_id).first()

    def list_employees(self, store_id: UUID) -> List[StoreEmployee]:
        return list(StoreEmployee.objects.filter(store_id=store_id))

    # ------------------------------------------------------------------
    # Status configs
    # ------------------------------------------------------------------

    def list_status_configs(
        self, store_id: UUID, active_only: bool = True
    ) -> List[OrderStatusConfig]:
        queryset = OrderStatusConfig.objects.filter(store_id=store_id)
        if active_only:
            queryset = queryset.filter(is_active=True)
        return list(queryset.order_by("display_order", "status_key"))

    def get_status_config(
        self, store_id: UUID, status: OrderStatus
    ) -> Optional[OrderStatusConfig]:
        return OrderStatusConfig.objects.filter(
            store_id=store_id, status_key=OrderStatus(status).value
        ).first()

    def list_accessible_store_ids(self, user_id: UUID) -> List[UUID]:
        owned = Store.objects.alive().filter(owner_id=user_id).values_list("id", flat=True)
        employed = StoreEmployee.objects.filter(
            user_id=user_id, is_active=True, store__deleted_at__isnull=True
        ).values_list("store_id", flat=True)
        return list(dict.fromkeys([*owned, *employed]))
