"""Integration tests for the message preview and manual WhatsApp send."""

from __future__ import annotations

import uuid

import pytest
from rest_framework.throttling import ScopedRateThrottle

from modules.notifications.exceptions import GatewayError
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration


def _preview_url(order) -> str:
    return f"/api/v1/orders/{order.id}/message-preview/"


def _send_url(order) -> str:
    return f"/api/v1/orders/{order.id}/whatsapp/"


class TestMessagePreview:
    def test_renders_requested_status(self, owner_client, order, make_status_config):
        make_status_config(OrderStatus.READY, "{{customer_name}}, seu pedido está pronto!")

        response = owner_client.get(_preview_url(order), {"status": "pronto"})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "status": "ready",
            "configured": True,
            "message": "Maria Silva, seu pedido está pronto!",
        }

    def test_defaults_to_current_status(self, owner_client, order):
        response = owner_client.get(_preview_url(order))
        assert response.json()["data"] == {
            "status": "pending",
            "configured": False,
            "message": None,
        }

    def test_invalid_status(self, owner_client, order):
        assert owner_client.get(_preview_url(order), {"status": "x"}).status_code == 400

    def test_malformed_stored_template(self, owner_client, order, store):
        from modules.stores.models import OrderStatusConfig

        OrderStatusConfig.objects.create(
            store=store, status_key="ready", status_label="Pronto", whatsapp_message="{{nome}}"
        )
        response = owner_client.get(_preview_url(order), {"status": "ready"})
        assert response.status_code == 400
        assert "nome" in response.json()["error"]

    def test_employee_without_status_rights_can_preview(self, client_for, make_employee, order):
        employee = make_employee()
        assert client_for(employee.user_id).get(_preview_url(order)).status_code == 200

    def test_stranger_forbidden(self, client_for, order):
        assert client_for(uuid.uuid4()).get(_preview_url(order)).status_code == 403


class TestManualSend:
    def test_sends_current_status_message(
        self, owner_client, make_order, make_status_config, sent_whatsapp
    ):
        order = make_order(status=OrderStatus.READY)
        make_status_config(OrderStatus.READY, "Pronto, {{customer_name}}!")

        response = owner_client.post(_send_url(order))

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"sent": True}}
        assert [call["text"] for call in sent_whatsapp] == ["Pronto, Maria Silva!"]

    def test_nothing_configured(self, owner_client, order, sent_whatsapp):
        response = owner_client.post(_send_url(order))
        assert response.json()["data"] == {"sent": False}
        assert sent_whatsapp == []

    def test_gateway_failure_is_500(self, owner_client, order, make_status_config, monkeypatch):
        make_status_config(OrderStatus.PENDING, "Recebido")

        def _fail(self, instance, number, text):
            raise GatewayError("Gateway de WhatsApp respondeu 502.", status_code=502)

        monkeypatch.setattr(
            "modules.notifications.whatsapp.EvolutionWhatsAppClient.send_text", _fail
        )
        response = owner_client.post(_send_url(order))
        assert response.status_code == 500
        assert "502" in response.json()["error"]

    def test_is_throttled(self, owner_client, order, sent_whatsapp, monkeypatch):
        monkeypatch.setattr(
            ScopedRateThrottle,
            "THROTTLE_RATES",
            {**ScopedRateThrottle.THROTTLE_RATES, "whatsapp_send": "2/minute"},
        )
        for _ in range(2):
            assert owner_client.post(_send_url(order)).status_code == 200
        response = owner_client.post(_send_url(order))
        assert response.status_code == 429
        assert "error" in response.json()
