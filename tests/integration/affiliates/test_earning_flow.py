"""Integration tests for commissions driven by order status changes."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from modules.affiliates.constants import EarningStatus
from modules.affiliates.models import Affiliate, AffiliateEarning, StoreAffiliate

pytestmark = pytest.mark.integration

STATUS_URL = "/api/v1/orders/status/"


@pytest.fixture()
def affiliated_order(store, make_order):
    affiliate = Affiliate.objects.create(name="Parceiro", email="parceiro@example.com")
    link = StoreAffiliate.objects.create(
        store=store,
        affiliate=affiliate,
        coupon_code="PARCEIRO",
        default_commission_value=Decimal("10"),
    )
    return make_order(
        status="in_delivery", store_affiliate=link, subtotal=Decimal("100.00")
    )


def _change(client, order, status, **extra):
    return client.post(
        STATUS_URL, {"orderId": str(order.id), "status": status, **extra}, format="json"
    )


def _earning_url(earning) -> str:
    return f"/api/v1/affiliate-earnings/{earning.id}/status/"


class TestCommissionOnStatusChange:
    def test_delivery_creates_pending_earning(self, owner_client, affiliated_order):
        assert _change(owner_client, affiliated_order, "entregue").status_code == 200

        earning = AffiliateEarning.objects.get(order=affiliated_order)
        assert earning.status == EarningStatus.PENDING
        assert earning.commission_amount == Decimal("10.00")

    def test_skip_notification_still_creates_earning(self, owner_client, affiliated_order):
        _change(owner_client, affiliated_order, "delivered", skipNotification=True)
        assert AffiliateEarning.objects.filter(order=affiliated_order).count() == 1

    def test_rejected_change_creates_nothing(self, client_for, affiliated_order):
        assert _change(client_for(uuid.uuid4()), affiliated_order, "delivered").status_code == 403
        assert not AffiliateEarning.objects.exists()

    def test_cancellation_cancels_open_earning(self, owner_client, affiliated_order):
        from modules.affiliates.services import CommissionService

        earning = CommissionService().create_earning(affiliated_order)
        assert _change(owner_client, affiliated_order, "cancelado").status_code == 200
        earning.refresh_from_db()
        assert earning.status == EarningStatus.CANCELLED


class TestEarningStatusEndpoint:
    @pytest.fixture()
    def earning(self, owner_client, affiliated_order):
        _change(owner_client, affiliated_order, "delivered")
        return AffiliateEarning.objects.get(order=affiliated_order)

    def test_owner_approves_then_pays(self, owner_client, earning):
        approved = owner_client.post(_earning_url(earning), {"status": "approved"}, format="json")
        assert approved.status_code == 200
        assert approved.json()["data"]["status"] == "approved"

        paid = owner_client.post(_earning_url(earning), {"status": "paid"}, format="json")
        assert paid.status_code == 200
        assert paid.json()["data"]["paid_at"] is not None

    def test_invalid_transition(self, owner_client, earning):
        response = owner_client.post(_earning_url(earning), {"status": "paid"}, format="json")
        assert response.status_code == 400
        earning.refresh_from_db()
        assert earning.status == EarningStatus.PENDING

    def test_pending_is_not_a_target(self, owner_client, earning):
        response = owner_client.post(_earning_url(earning), {"status": "pending"}, format="json")
        assert response.status_code == 400

    def test_employee_forbidden(self, client_for, make_employee, earning):
        employee = make_employee({"change_any_status": True})
        response = client_for(employee.user_id).post(
            _earning_url(earning), {"status": "approved"}, format="json"
        )
        assert response.status_code == 403

    def test_unknown_earning(self, owner_client):
        response = owner_client.post(
            f"/api/v1/affiliate-earnings/{uuid.uuid4()}/status/",
            {"status": "approved"},
            format="json",
        )
        assert response.status_code == 404
