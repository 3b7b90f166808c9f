"""Affiliate program models.

- ``Affiliate`` is a person promoting stores (optionally with a login).
- ``StoreAffiliate`` links an affiliate to one store with its coupon and
  commission rule.
- ``AffiliateEarning`` is the commission owed for one delivered order.
  At most one earning exists per (order, link).
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from modules.affiliates.constants import (
    EARNING_TRANSITIONS,
    CommissionType,
    EarningStatus,
)
from modules.affiliates.exceptions import InvalidEarningTransition
from modules.core.models import BaseModel

MONEY = {"max_digits": 10, "decimal_places": 2}


class Affiliate(BaseModel):
    user_id = models.UUIDField(null=True, blank=True, db_index=True)
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "affiliates"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class StoreAffiliate(BaseModel):
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="store_affiliates",
    )
    affiliate = models.ForeignKey(
        "affiliates.Affiliate",
        on_delete=models.CASCADE,
        related_name="store_links",
    )
    coupon_code = models.CharField(max_length=50, blank=True, default="")
    commission_enabled = models.BooleanField(default=True)
    default_commission_type = models.CharField(
        max_length=20,
        choices=CommissionType.choices,
        default=CommissionType.PERCENTAGE,
    )
    default_commission_value = models.DecimalField(**MONEY, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "store_affiliates"
        constraints = [
            models.UniqueConstraint(
                fields=["store", "affiliate"],
                name="store_affiliates_store_affiliate_uniq",
            ),
        ]

    @property
    def earns_commission(self) -> bool:
        return self.is_active and self.commission_enabled

    def __str__(self) -> str:
        return f"{self.affiliate_id} @ {self.store_id}"


class AffiliateEarning(BaseModel):
    """Commission record; snapshot of the rule used to compute it."""

    store_affiliate = models.ForeignKey(
        "affiliates.StoreAffiliate",
        on_delete=models.PROTECT,
        related_name="earnings",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="affiliate_earnings",
    )
    order_total = models.DecimalField(**MONEY)
    commission_type = models.CharField(max_length=20, choices=CommissionType.choices)
    commission_value = models.DecimalField(**MONEY)
    commission_amount = models.DecimalField(**MONEY)
    status = models.CharField(
        max_length=20,
        choices=EarningStatus.choices,
        default=EarningStatus.PENDING,
    )
    paid_at = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "affiliate_earnings"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "store_affiliate"],
                name="affiliate_earnings_order_link_uniq",
            ),
        ]

    @property
    def store_id(self):
        return self.store_affiliate.store_id

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in EARNING_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: str) -> None:
        """Apply a lifecycle step in memory; ``paid`` stamps ``paid_at``."""
        if not self.can_transition_to(new_status):
            raise InvalidEarningTransition(
                f"Não é possível mudar a comissão de {self.status} para {new_status}."
            )
        self.status = new_status
        if new_status == EarningStatus.PAID:
            self.paid_at = timezone.now()

    def __str__(self) -> str:
        return f"{self.order_id}: {self.commission_amount} [{self.status}]"
