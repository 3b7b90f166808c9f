from __future__ import annotations

from decimal import Decimal

import pytest
from freezegun import freeze_time

from django.utils import timezone

from modules.affiliates.constants import CommissionType, EarningStatus
from modules.affiliates.exceptions import InvalidEarningTransition
from modules.affiliates.models import Affiliate, AffiliateEarning, StoreAffiliate
from modules.affiliates.services import CommissionService, calculate_commission
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.unit


@pytest.fixture()
def link(store):
    affiliate = Affiliate.objects.create(name="Parceiro", email="parceiro@example.com")
    return StoreAffiliate.objects.create(
        store=store,
        affiliate=affiliate,
        coupon_code="PARCEIRO10",
        default_commission_type=CommissionType.PERCENTAGE,
        default_commission_value=Decimal("10.00"),
    )


@pytest.fixture()
def affiliated_order(make_order, link):
    return make_order(store_affiliate=link, subtotal=Decimal("84.55"), coupon_code="PARCEIRO10")


class TestCalculateCommission:
    @pytest.mark.parametrize(
        "subtotal, kind, value, expected",
        [
            ("100.00", CommissionType.PERCENTAGE, "10", "10.00"),
            ("84.55", CommissionType.PERCENTAGE, "10", "8.46"),
            ("0.05", CommissionType.PERCENTAGE, "10", "0.01"),
            ("100.00", CommissionType.FIXED, "5", "5.00"),
            ("0.00", CommissionType.FIXED, "7.5", "7.50"),
        ],
    )
    def test_amounts(self, subtotal, kind, value, expected):
        assert calculate_commission(Decimal(subtotal), kind, Decimal(value)) == Decimal(expected)


class TestCreateEarning:
    def test_snapshot_of_rule(self, affiliated_order, link):
        earning = CommissionService().create_earning(affiliated_order)
        assert earning.status == EarningStatus.PENDING
        assert earning.order_total == Decimal("84.55")
        assert earning.commission_amount == Decimal("8.46")
        assert earning.commission_type == CommissionType.PERCENTAGE
        assert earning.store_id == link.store_id

    def test_at_most_one_per_order(self, affiliated_order):
        service = CommissionService()
        service.create_earning(affiliated_order)
        assert service.create_earning(affiliated_order) is None
        assert AffiliateEarning.objects.filter(order=affiliated_order).count() == 1

    def test_order_without_affiliate(self, order):
        assert CommissionService().create_earning(order) is None

    @pytest.mark.parametrize("field", ["is_active", "commission_enabled"])
    def test_disabled_link(self, affiliated_order, link, field):
        setattr(link, field, False)
        link.save()
        affiliated_order.refresh_from_db()
        assert CommissionService().create_earning(affiliated_order) is None

    def test_zero_amount_skipped(self, affiliated_order, link):
        link.default_commission_value = Decimal("0")
        link.save()
        affiliated_order.refresh_from_db()
        assert CommissionService().create_earning(affiliated_order) is None


class TestOnStatusChanged:
    def test_delivered_creates(self, affiliated_order):
        CommissionService().on_status_changed(
            affiliated_order, OrderStatus.IN_DELIVERY, OrderStatus.DELIVERED
        )
        assert AffiliateEarning.objects.filter(order=affiliated_order).exists()

    def test_cancelled_cancels_open_earnings(self, affiliated_order):
        service = CommissionService()
        earning = service.create_earning(affiliated_order)
        service.on_status_changed(affiliated_order, OrderStatus.READY, OrderStatus.CANCELLED)
        earning.refresh_from_db()
        assert earning.status == EarningStatus.CANCELLED

    def test_paid_earnings_survive_cancellation(self, affiliated_order):
        service = CommissionService()
        earning = service.create_earning(affiliated_order)
        AffiliateEarning.objects.filter(id=earning.id).update(status=EarningStatus.PAID)

        assert service.cancel_earnings(affiliated_order) == 0
        earning.refresh_from_db()
        assert earning.status == EarningStatus.PAID

    @pytest.mark.parametrize("status", [OrderStatus.CONFIRMED, OrderStatus.READY])
    def test_other_statuses_do_nothing(self, affiliated_order, status):
        CommissionService().on_status_changed(affiliated_order, OrderStatus.PENDING, status)
        assert not AffiliateEarning.objects.exists()


class TestEarningLifecycle:
    @freeze_time("2026-03-01 12:00:00")
    def test_paid_stamps_paid_at(self, affiliated_order):
        earning = CommissionService().create_earning(affiliated_order)
        earning.transition_to(EarningStatus.APPROVED)
        earning.transition_to(EarningStatus.PAID)
        assert earning.paid_at == timezone.now()

    @pytest.mark.parametrize(
        "path",
        [
            [EarningStatus.PAID],
            [EarningStatus.CANCELLED, EarningStatus.APPROVED],
            [EarningStatus.APPROVED, EarningStatus.PAID, EarningStatus.CANCELLED],
        ],
    )
    def test_invalid_steps(self, affiliated_order, path):
        earning = CommissionService().create_earning(affiliated_order)
        with pytest.raises(InvalidEarningTransition):
            for status in path:
                earning.transition_to(status)
