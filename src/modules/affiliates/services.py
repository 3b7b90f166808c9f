"""Affiliate commission use-cases.

``CommissionService.on_status_changed`` runs inside the order status
transaction, so a commission exists if and only if the status change
committed.  Notification suppression does not apply here.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.affiliates.constants import CommissionType, EarningStatus
from modules.affiliates.exceptions import EarningNotFound
from modules.affiliates.models import AffiliateEarning
from modules.orders.constants import OrderStatus
from modules.stores.exceptions import Forbidden

if TYPE_CHECKING:
    from modules.affiliates.models import StoreAffiliate
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")


def calculate_commission(
    subtotal: Decimal, commission_type: str, commission_value: Decimal
) -> Decimal:
    """Percentage of the subtotal (rounded half-up to cents) or a fixed value."""
    value = Decimal(commission_value)
    if commission_type == CommissionType.PERCENTAGE:
        amount = Decimal(subtotal) * value / Decimal("100")
    else:
        amount = value
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class CommissionService:
    def on_status_changed(
        self, order: Order, old_status: Optional[str], new_status: str
    ) -> None:
        if new_status == OrderStatus.DELIVERED:
            self.create_earning(order)
        elif new_status == OrderStatus.CANCELLED:
            self.cancel_earnings(order)

    def create_earning(self, order: Order) -> Optional[AffiliateEarning]:
        link: Optional[StoreAffiliate] = order.store_affiliate
        log = logger.bind(order_id=str(order.id))
        if link is None or not link.earns_commission:
            return None
        if AffiliateEarning.objects.filter(order=order, store_affiliate=link).exists():
            log.info("affiliate.earning_exists", store_affiliate_id=str(link.id))
            return None

        amount = calculate_commission(
            order.subtotal, link.default_commission_type, link.default_commission_value
        )
        if amount <= 0:
            log.info("affiliate.earning_skipped", reason="non_positive_amount")
            return None

        earning = AffiliateEarning.objects.create(
            store_affiliate=link,
            order=order,
            order_total=order.subtotal,
            commission_type=link.default_commission_type,
            commission_value=link.default_commission_value,
            commission_amount=amount,
        )
        log.info(
            "affiliate.earning_created",
            earning_id=str(earning.id),
            store_affiliate_id=str(link.id),
            commission_amount=str(amount),
        )
        return earning

    def cancel_earnings(self, order: Order) -> int:
        earnings: List[AffiliateEarning] = list(
            AffiliateEarning.objects.select_for_update().filter(
                order=order,
                status__in=[EarningStatus.PENDING, EarningStatus.APPROVED],
            )
        )
        for earning in earnings:
            earning.transition_to(EarningStatus.CANCELLED)
            earning.save(update_fields=["status"])

        if earnings:
            logger.info(
                "affiliate.earnings_cancelled",
                order_id=str(order.id),
                count=len(earnings),
            )
        return len(earnings)

    @transaction.atomic
    def change_earning_status(
        self, user_id: UUID, earning_id: str, new_status: str
    ) -> AffiliateEarning:
        """Store-owner action moving an earning through its lifecycle.

        Raises:
            EarningNotFound: no such earning.
            Forbidden: the user does not own the earning's store.
            InvalidEarningTransition: lifecycle step not allowed.
        """
        earning = (
            AffiliateEarning.objects.select_for_update()
            .select_related("store_affiliate__store")
            .filter(id=earning_id)
            .first()
        )
        if earning is None:
            raise EarningNotFound(f"Earning {earning_id} not found.")
        if not earning.store_affiliate.store.is_owned_by(user_id):
            raise Forbidden("Apenas o dono da loja pode alterar comissões.")

        old_status = earning.status
        earning.transition_to(new_status)
        earning.save(update_fields=["status", "paid_at"])
        logger.info(
            "affiliate.earning_status_changed",
            earning_id=str(earning.id),
            old_status=old_status,
            new_status=new_status,
        )
        return earning
