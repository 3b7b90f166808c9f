"""Order status use-case.

``OrderStatusService.change_status`` is the single entry point for status
changes:

1. normalize the requested status (``InvalidStatus``);
2. lock the order row (``OrderNotFound``);
3. authorize against the store owner / employee permissions (``Forbidden``);
4. reject moving a terminal order to another status (``OrderStatusLocked``);
5. write the status, with notifications suppressed when asked;
6. create or cancel affiliate commission.

Steps 2-6 share one transaction: a rejected request never writes, and the
history, outbox and commission rows commit together with the status.
Re-applying the current status is a no-op that returns the order as is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

import structlog
from django.db import DatabaseError, transaction

from modules.orders.authorization import StatusChangeAuthorizer
from modules.orders.exceptions import (
    OrderNotFound,
    OrderStatusLocked,
    PersistenceError,
    StoreNotFound,
)
from modules.orders.status import normalize_status

if TYPE_CHECKING:
    from modules.affiliates.services import CommissionService
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class OrderStatusService:
    """Application service for order status changes.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        store_repository: IStoreRepository,
        commission_service: CommissionService,
    ) -> None:
        self._order_repo = order_repository
        self._store_repo = store_repository
        self._authorizer = StatusChangeAuthorizer(store_repository)
        self._commissions = commission_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def change_status(
        self,
        user_id: UUID,
        order_id: Any,
        raw_status: Any,
        skip_notification: bool = False,
        notes: str = "",
    ) -> Order:
        """Move an order to the status named by *raw_status*.

        Raises:
            InvalidStatus: unknown status.
            OrderNotFound: order does not exist.
            StoreNotFound: the order's store was deleted.
            Forbidden: user may not set this status in this store.
            OrderStatusLocked: order is delivered or cancelled.
            PersistenceError: the database rejected the write.
        """
        new_status = normalize_status(raw_status)
        log = logger.bind(
            order_id=str(order_id),
            user_id=str(user_id),
            new_status=new_status.value,
            skip_notification=skip_notification,
        )

        with transaction.atomic():
            order = self._order_repo.get_for_update(str(order_id))
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")
            if order.store.is_deleted:
                raise StoreNotFound(f"Store {order.store_id} not found.")

            self._authorizer.authorize(user_id, order.store, new_status)

            old_status = order.status
            if old_status == new_status:
                log.info("order.status_unchanged")
                return order
            if order.is_terminal:
                log.warning("order.status_locked", current_status=old_status)
                raise OrderStatusLocked(
                    "Pedidos entregues ou cancelados não podem mudar de status."
                )

            order = self._order_repo.update_status(
                order,
                new_status,
                changed_by=user_id,
                notes=notes,
                skip_notification=skip_notification,
            )
            try:
                with transaction.atomic():
                    self._commissions.on_status_changed(order, old_status, new_status)
            except DatabaseError as exc:
                log.error("order.commission_write_failed", error=str(exc))
                raise PersistenceError("Não foi possível registrar a comissão.") from exc

        log.info("order.status_updated", old_status=old_status)
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, user_id: UUID, order_id: str) -> Order:
        """Retrieve an order the user can see.

        Raises:
            OrderNotFound: no such order.
            Forbidden: user is neither owner nor active employee.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        self._authorizer.ensure_store_access(user_id, order.store)
        return order

    def list_orders(self, user_id: UUID, store_id: Optional[UUID] = None) -> Any:
        """Queryset of orders in the stores the user can access."""
        store_ids = self._store_repo.list_accessible_store_ids(user_id)
        if store_id is not None:
            store_ids = [sid for sid in store_ids if sid == store_id]
        return self._order_repo.list_for_stores(store_ids)
