"""Django ORM implementation of the Order repository.

Concurrency control on status updates uses ``select_for_update()`` on the
order row; callers hold the surrounding transaction.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import PersistenceError
from modules.orders.models import Order
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.suppression import notifications_suppressed

logger = structlog.get_logger(__name__)

ITEM_PREFETCH = ("items__addons", "items__flavors")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return (
                Order.objects.alive()
                .select_related("store")
                .prefetch_related(*ITEM_PREFETCH, "status_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = Order.objects.alive().select_related("store")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_stores(self, store_ids: Iterable[UUID]) -> Any:
        return (
            Order.objects.alive()
            .select_related("store")
            .filter(store_id__in=list(store_ids))
        )

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        The store is fetched in the same query so authorization can run
        while the row is locked.  Returns ``None`` for non-existent or
        invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update()
                .select_related("store")
                .filter(id=id, deleted_at__isnull=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None
        except DatabaseError as exc:
            logger.error("order.lock_failed", order_id=str(id), error=str(exc))
            raise PersistenceError("Não foi possível carregar o pedido.") from exc

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    def update_status(
        self,
        order: Order,
        status: OrderStatus,
        *,
        changed_by: Optional[UUID] = None,
        notes: str = "",
        skip_notification: bool = False,
    ) -> Order:
        """Persist ``status`` on an already-locked order.

        History and notification rows are written by the ``post_save``
        hooks; the transient attributes below carry the actor and notes
        to them.
        """
        order.status = OrderStatus(status).value
        order._status_changed_by = changed_by
        order._status_change_notes = notes

        try:
            with transaction.atomic(), notifications_suppressed(skip_notification):
                order.save(update_fields=["status"])
        except DatabaseError as exc:
            logger.error(
                "order.status_write_failed",
                order_id=str(order.id),
                status=order.status,
                error=str(exc),
            )
            raise PersistenceError("Não foi possível atualizar o status.") from exc

        return order
