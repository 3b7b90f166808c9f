"""Integration tests for request correlation ids.

The id comes from ``X-Request-ID`` (or a fresh UUID4), is echoed back,
is only visible while the request runs and is copied into the outbox rows
the request writes.
"""

import uuid

import pytest

from modules.core.middleware import get_correlation_id
from modules.core.models import OutboxEvent

pytestmark = pytest.mark.integration


class TestCorrelationIdMiddleware:
    def test_echoes_caller_request_id(self, client):
        response = client.get("/health", HTTP_X_REQUEST_ID="pedido-req-123")
        assert response["X-Request-ID"] == "pedido-req-123"

    def test_generates_uuid4_when_absent(self, client):
        request_id = client.get("/health")["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_each_request_gets_its_own_id(self, client):
        first = client.get("/health")["X-Request-ID"]
        second = client.get("/health")["X-Request-ID"]
        assert first != second

    def test_reset_after_request(self, client):
        client.get("/health", HTTP_X_REQUEST_ID="short-lived")
        assert get_correlation_id() == ""

    def test_reset_after_failed_request(self, api_client):
        response = api_client.get("/api/v1/me", HTTP_X_REQUEST_ID="rejected-request")
        assert response.status_code == 401
        assert response["X-Request-ID"] == "rejected-request"
        assert get_correlation_id() == ""


def test_outbox_rows_carry_request_id(owner_client, order):
    response = owner_client.post(
        "/api/v1/orders/status/",
        {"orderId": str(order.id), "status": "confirmed"},
        format="json",
        HTTP_X_REQUEST_ID="status-change-42",
    )

    assert response.status_code == 200
    rows = OutboxEvent.objects.filter(aggregate_id=str(order.id))
    assert rows.count() == 2
    assert {row.payload["correlation_id"] for row in rows} == {"status-change-42"}
