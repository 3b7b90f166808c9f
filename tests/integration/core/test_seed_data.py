from __future__ import annotations

import uuid
from io import StringIO

import pytest
from django.core.management import call_command

from modules.core.models import OutboxEvent
from modules.orders.models import Order
from modules.stores.models import OrderStatusConfig, Store, StoreEmployee

pytestmark = pytest.mark.integration


def test_seed_creates_demo_store():
    owner = uuid.uuid4()
    out = StringIO()

    call_command("seed_data", "--owner", str(owner), "--orders", "5", stdout=out)

    store = Store.objects.get(owner_id=owner)
    assert OrderStatusConfig.objects.filter(store=store).count() == 7
    assert Order.objects.filter(store=store).count() == 5
    employee = StoreEmployee.objects.get(store=store)
    assert employee.order_permissions["change_status_confirmed"] is True
    assert employee.order_permissions["change_status_ready"] is False
    assert not OutboxEvent.objects.exists()
    assert "Seed completed" in out.getvalue()


def test_seed_is_idempotent_for_catalogue():
    owner = uuid.uuid4()
    call_command("seed_data", "--owner", str(owner), "--orders", "0", stdout=StringIO())
    call_command("seed_data", "--owner", str(owner), "--orders", "0", stdout=StringIO())

    assert Store.objects.filter(owner_id=owner).count() == 1
    assert OrderStatusConfig.objects.count() == 7
    assert StoreEmployee.objects.count() == 1
