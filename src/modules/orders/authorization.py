"""Authorization gate for order status changes.

Rules, in order:

1. the store owner may set any status;
2. otherwise the user must be an active employee of the store;
3. ``change_any_status`` grants every status;
4. ``change_status_<key>`` grants that canonical status only.

Only literal ``True`` flags grant anything (see ``StatusPermissions``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.orders.constants import OrderStatus
from modules.stores.exceptions import Forbidden
from modules.stores.permissions import StatusPermissions

if TYPE_CHECKING:
    from modules.stores.models import Store, StoreEmployee
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StatusChangeAuthorizer:
    def __init__(self, store_repository: IStoreRepository) -> None:
        self._stores = store_repository

    def authorize(self, user_id: UUID, store: Store, status: OrderStatus) -> None:
        """Raise ``Forbidden`` unless *user_id* may set *status* in *store*."""
        log = logger.bind(
            user_id=str(user_id), store_id=str(store.id), status=OrderStatus(status).value
        )
        if store.is_owned_by(user_id):
            return

        employee = self._active_employee(user_id, store)
        if employee is None:
            log.warning("order.status_change_denied", reason="not_employee")
            raise Forbidden("Você não tem permissão para alterar pedidos desta loja.")

        permissions = StatusPermissions.from_stored(employee.order_permissions)
        if not permissions.allows(status):
            log.warning("order.status_change_denied", reason="missing_permission")
            raise Forbidden(
                f"Você não tem permissão para alterar o status para "
                f"{OrderStatus(status).label}."
            )

    def ensure_store_access(self, user_id: UUID, store: Store) -> None:
        """Owner or active employee; used by read-only endpoints."""
        if store.is_owned_by(user_id):
            return
        if self._active_employee(user_id, store) is None:
            raise Forbidden("Você não tem acesso a esta loja.")

    def _active_employee(self, user_id: UUID, store: Store) -> Optional[StoreEmployee]:
        employee = self._stores.get_employee(store.id, user_id)
        if employee is None or not employee.is_active:
            return None
        return employee
