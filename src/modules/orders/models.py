"""Order aggregate models.

- ``Order`` belongs to one store; its status is always a canonical
  ``OrderStatus`` value, whatever alias the client sent.
- Once an order reaches a terminal status it no longer changes (enforced
  at the service layer).
- ``order_number`` is auto-generated as a human-readable identifier.
- Items snapshot the product name and price at checkout time;
  ``subtotal`` is always ``quantity * unit_price`` (calculated on save).
- ``OrderStatusHistory`` is an append-only audit trail written by
  ``modules.orders.signals`` on every actual status change.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    DeliveryType,
    OrderStatus,
    PaymentMethod,
)

logger = structlog.get_logger(__name__)

MONEY = {"max_digits": 10, "decimal_places": 2}


class Order(SoftDeleteModel):
    """Order aggregate root.

    ``order_number`` format: ``PED-YYYYMMDD-XXXXXX``.  The UUIDv7 ``id`` is
    used for all internal references and API lookups.
    """

    store: models.ForeignKey = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    customer_name: models.CharField = models.CharField(max_length=200)
    customer_phone: models.CharField = models.CharField(
        max_length=30, blank=True, default=""
    )

    subtotal: models.DecimalField = models.DecimalField(**MONEY, default=Decimal("0.00"))
    delivery_fee: models.DecimalField = models.DecimalField(
        **MONEY, default=Decimal("0.00")
    )
    total: models.DecimalField = models.DecimalField(**MONEY, default=Decimal("0.00"))
    change_amount: models.DecimalField = models.DecimalField(
        **MONEY, null=True, blank=True
    )

    delivery_type: models.CharField = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        default=DeliveryType.DELIVERY,
    )
    payment_method: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.PIX,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    delivery_street: models.CharField = models.CharField(
        max_length=200, blank=True, default=""
    )
    delivery_number: models.CharField = models.CharField(
        max_length=20, blank=True, default=""
    )
    delivery_complement: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    delivery_neighborhood: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    delivery_city: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    coupon_code: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )
    store_affiliate: models.ForeignKey = models.ForeignKey(
        "affiliates.StoreAffiliate",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "status"], name="orders_store_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_delivery(self) -> bool:
        return self.delivery_type == DeliveryType.DELIVERY

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``PED-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"PED-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item with a product snapshot taken at checkout."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product_name: models.CharField = models.CharField(max_length=200)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(**MONEY)
    subtotal: models.DecimalField = models.DecimalField(**MONEY, editable=False)
    observation: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.quantity}x {self.product_name}"


class OrderItemAddon(BaseModel):
    item: models.ForeignKey = models.ForeignKey(
        "orders.OrderItem",
        on_delete=models.CASCADE,
        related_name="addons",
    )
    name: models.CharField = models.CharField(max_length=200)
    price: models.DecimalField = models.DecimalField(**MONEY, default=Decimal("0.00"))

    class Meta:
        db_table = "order_item_addons"
        ordering = ["created_at"]


class OrderItemFlavor(BaseModel):
    item: models.ForeignKey = models.ForeignKey(
        "orders.OrderItem",
        on_delete=models.CASCADE,
        related_name="flavors",
    )
    name: models.CharField = models.CharField(max_length=200)

    class Meta:
        db_table = "order_item_flavors"
        ordering = ["created_at"]


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status changes.

    Inherits ``BaseModel`` (not ``SoftDeleteModel``): audit records are
    never edited or soft-deleted.  ``changed_by`` is the identity UUID of
    the acting user; ``None`` means a system change.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    changed_by: models.UUIDField = models.UUIDField(null=True, blank=True)
    notification_suppressed: models.BooleanField = models.BooleanField(default=False)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
