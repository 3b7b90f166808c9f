from __future__ import annotations

import time
import uuid
from decimal import Decimal

import jwt as pyjwt
import pytest
from django.conf import settings
from django.core.cache import cache

from rest_framework.test import APIClient

from modules.orders.constants import DeliveryType, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem
from modules.realtime.publishers import get_publisher
from modules.stores.models import OrderStatusConfig, Store, StoreEmployee


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _reset_shared_state():
    cache.clear()
    get_publisher().clear()
    yield
    get_publisher().clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def make_token(user_id: uuid.UUID, **claims) -> str:
    payload = {
        "sub": str(user_id),
        "aud": settings.SUPABASE_JWT_AUDIENCE,
        "exp": int(time.time()) + 3600,
        "email": f"{user_id.hex[:8]}@example.com",
        "role": "authenticated",
    }
    payload.update(claims)
    return pyjwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


@pytest.fixture()
def token_for():
    return make_token


@pytest.fixture()
def client_for():
    """``client_for(user_id)`` -> APIClient carrying that user's bearer token."""

    def _client(user_id: uuid.UUID) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(user_id)}")
        return client

    return _client


@pytest.fixture()
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def owner_client(client_for, owner_id):
    return client_for(owner_id)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture()
def store(owner_id) -> Store:
    return Store.objects.create(
        owner_id=owner_id,
        name="Pizzaria Teste",
        phone="11 3333-4444",
        address="Rua A, 10",
        pickup_address="Rua A, 10 (balcão)",
        whatsapp_instance="pizzaria-teste",
    )


@pytest.fixture()
def make_status_config(store):
    def _make(status: OrderStatus, message: str = "", **overrides) -> OrderStatusConfig:
        values = {
            "store": store,
            "status_key": status,
            "status_label": OrderStatus(status).label,
            "display_order": list(OrderStatus).index(status),
            "whatsapp_message": message,
        }
        values.update(overrides)
        return OrderStatusConfig.objects.create(**values)

    return _make


@pytest.fixture()
def make_employee(store):
    def _make(orders_permissions=None, is_active=True, **overrides) -> StoreEmployee:
        values = {
            "store": store,
            "user_id": uuid.uuid4(),
            "name": "Funcionário",
            "permissions": {"orders": orders_permissions or {}},
            "is_active": is_active,
        }
        values.update(overrides)
        return StoreEmployee.objects.create(**values)

    return _make


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order(store):
    def _make(**overrides) -> Order:
        values = {
            "store": store,
            "status": OrderStatus.PENDING,
            "customer_name": "Maria Silva",
            "customer_phone": "(11) 98765-4321",
            "subtotal": Decimal("50.00"),
            "delivery_fee": Decimal("5.00"),
            "total": Decimal("55.00"),
            "delivery_type": DeliveryType.DELIVERY,
            "payment_method": PaymentMethod.PIX,
            "delivery_street": "Rua B",
            "delivery_number": "20",
            "delivery_neighborhood": "Centro",
            "delivery_city": "São Paulo",
        }
        values.update(overrides)
        return Order.objects.create(**values)

    return _make


@pytest.fixture()
def order(make_order) -> Order:
    order = make_order()
    OrderItem.objects.create(
        order=order,
        product_name="Pizza Calabresa",
        quantity=1,
        unit_price=Decimal("50.00"),
    )
    return order


@pytest.fixture()
def sent_whatsapp(monkeypatch):
    """Records gateway calls instead of hitting the network."""
    calls = []

    def _send_text(self, instance, number, text):
        calls.append({"instance": instance, "number": number, "text": text})
        return {"key": {"id": str(len(calls))}}

    monkeypatch.setattr(
        "modules.notifications.whatsapp.EvolutionWhatsAppClient.send_text", _send_text
    )
    return calls
