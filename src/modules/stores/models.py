"""Store, per-store status configuration and employee models.

- ``Store.owner_id`` is the identity UUID of the owner (JWT ``sub``).
- ``OrderStatusConfig`` rows are the store's customer-facing status
  catalogue; keys are always canonical ``OrderStatus`` values.
- ``StoreEmployee.permissions`` keeps the nested JSON layout the dashboard
  edits (``{"orders": {"change_status_<key>": bool, ...}}``).  Parsing into
  typed flags lives in ``modules.stores.permissions``.
"""

from __future__ import annotations

from typing import Any

from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import OrderStatus


class Store(SoftDeleteModel):
    owner_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=30, blank=True, default="")
    address = models.CharField(max_length=300, blank=True, default="")
    pickup_address = models.CharField(max_length=300, blank=True, default="")
    whatsapp_instance = models.CharField(max_length=120, blank=True, default="")
    whatsapp_phone = models.CharField(max_length=30, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "stores"
        ordering = ["name"]

    @property
    def has_whatsapp(self) -> bool:
        return bool(self.whatsapp_instance)

    def is_owned_by(self, user_id: Any) -> bool:
        return str(self.owner_id) == str(user_id)

    def __str__(self) -> str:
        return self.name


class OrderStatusConfig(BaseModel):
    """Display settings and WhatsApp template for one status of one store."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="status_configs",
    )
    status_key = models.CharField(max_length=20, choices=OrderStatus.choices)
    status_label = models.CharField(max_length=100)
    status_color = models.CharField(max_length=20, blank=True, default="#6b7280")
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    whatsapp_message = models.TextField(blank=True, default="")
    show_for_delivery = models.BooleanField(default=True)
    show_for_pickup = models.BooleanField(default=True)

    class Meta:
        db_table = "order_status_configs"
        ordering = ["display_order", "status_key"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "status_key"],
                name="order_status_configs_store_key_uniq",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.whatsapp_message:
            from modules.notifications.templating import TemplateError, parse_template

            try:
                parse_template(self.whatsapp_message)
            except TemplateError as exc:
                raise ValidationError({"whatsapp_message": str(exc)}) from exc

    def __str__(self) -> str:
        return f"{self.store_id}:{self.status_key} ({self.status_label})"


class StoreEmployee(BaseModel):
    """Employee of a store; transition rights come from ``permissions``.

    Deactivating (``is_active=False``) revokes every right while keeping
    the row for history.
    """

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="employees",
    )
    user_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=200, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    permissions = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "store_employees"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "user_id"],
                name="store_employees_store_user_uniq",
            ),
        ]

    @property
    def order_permissions(self) -> dict[str, Any]:
        orders = (self.permissions or {}).get("orders")
        return orders if isinstance(orders, dict) else {}

    def __str__(self) -> str:
        return f"{self.name or self.user_id} @ {self.store_id}"
