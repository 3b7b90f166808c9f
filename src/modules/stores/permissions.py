"""Typed status-change permissions.

Stored employee permissions are free-form JSON edited by the dashboard.
Here they are projected onto the closed ``OrderStatus`` enum: each
canonical status maps to a boolean, and only literal ``True`` grants a
right.  Permission keys are built from enum members, never from request
input, so an unexpected JSON key can never grant anything.

The catalogue shown to the owner when editing an employee is derived from
the store's active status configs, so new statuses produce new flags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from modules.orders.constants import OrderStatus

ANY_STATUS_KEY = "change_any_status"
ORDERS_MODULE_KEY = "orders"

# Statuses an employee may set by default when a store adds them.
DEFAULT_GRANTED_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.CONFIRMED, OrderStatus.PREPARING}
)


def permission_key(status: OrderStatus) -> str:
    """Stored flag name for *status* (``change_status_<key>``)."""
    return f"change_status_{OrderStatus(status).value}"


@dataclass(frozen=True)
class StatusPermissions:
    """Status-change rights of one employee in one store."""

    change_any_status: bool
    granted: frozenset[OrderStatus]

    @classmethod
    def from_stored(cls, stored: Mapping[str, Any] | None) -> StatusPermissions:
        """Parse the ``orders`` section of an employee's permissions."""
        stored = stored or {}
        granted = frozenset(
            status for status in OrderStatus if stored.get(permission_key(status)) is True
        )
        return cls(
            change_any_status=stored.get(ANY_STATUS_KEY) is True,
            granted=granted,
        )

    def allows(self, status: OrderStatus) -> bool:
        return self.change_any_status or status in self.granted

    def as_mapping(self) -> dict[OrderStatus, bool]:
        return {status: self.allows(status) for status in OrderStatus}


@dataclass(frozen=True)
class PermissionItem:
    key: str
    label: str
    description: str
    default_value: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "description": self.description,
            "defaultValue": self.default_value,
        }


def project_status_permissions(configs: Iterable[Any]) -> list[PermissionItem]:
    """Permission catalogue for a store's active status configs.

    *configs* are ``OrderStatusConfig``-like objects (``status_key``,
    ``status_label``, ``is_active``), already ordered for display.
    """
    items = [
        PermissionItem(
            key=ANY_STATUS_KEY,
            label="Qualquer Status",
            description="Pode alterar para qualquer status",
            default_value=False,
        )
    ]
    for config in configs:
        if not config.is_active:
            continue
        status = OrderStatus(config.status_key)
        items.append(
            PermissionItem(
                key=permission_key(status),
                label=f"Para {config.status_label}",
                description=f"Alterar status para: {config.status_label}",
                default_value=status in DEFAULT_GRANTED_STATUSES,
            )
        )
    return items


def merge_missing_defaults(
    permissions: Mapping[str, Any] | None, items: Iterable[PermissionItem]
) -> tuple[dict[str, Any], bool]:
    """Add absent status flags with their defaults.

    Existing values are never overwritten.  Returns the new permissions
    document and whether anything was added.
    """
    merged = dict(permissions or {})
    orders = dict(merged.get(ORDERS_MODULE_KEY) or {})
    changed = False
    for item in items:
        if item.key not in orders:
            orders[item.key] = item.default_value
            changed = True
    merged[ORDERS_MODULE_KEY] = orders
    return merged, changed
