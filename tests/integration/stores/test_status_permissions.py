"""Integration tests for the status-permission catalogue and its sync."""

from __future__ import annotations

import uuid

import pytest
from django.core.exceptions import ValidationError

from modules.orders.constants import OrderStatus
from modules.stores.models import OrderStatusConfig

pytestmark = pytest.mark.integration


def _url(store) -> str:
    return f"/api/v1/stores/{store.id}/status-permissions/"


class TestCatalogueEndpoint:
    def test_owner_gets_catalogue_for_active_statuses(
        self, owner_client, store, make_status_config
    ):
        make_status_config(OrderStatus.CONFIRMED)
        make_status_config(OrderStatus.READY)
        make_status_config(OrderStatus.CANCELLED, is_active=False)

        response = owner_client.get(_url(store))

        assert response.status_code == 200
        body = response.json()
        assert [s["status_key"] for s in body["statuses"]] == ["confirmed", "ready"]
        assert body["permissions"] == [
            {
                "key": "change_any_status",
                "label": "Qualquer Status",
                "description": "Pode alterar para qualquer status",
                "defaultValue": False,
            },
            {
                "key": "change_status_confirmed",
                "label": "Para Confirmado",
                "description": "Alterar status para: Confirmado",
                "defaultValue": True,
            },
            {
                "key": "change_status_ready",
                "label": "Para Pronto",
                "description": "Alterar status para: Pronto",
                "defaultValue": False,
            },
        ]

    def test_employee_forbidden(self, client_for, make_employee, store):
        employee = make_employee({"change_any_status": True})
        assert client_for(employee.user_id).get(_url(store)).status_code == 403

    def test_unknown_store(self, owner_client):
        response = owner_client.get(f"/api/v1/stores/{uuid.uuid4()}/status-permissions/")
        assert response.status_code == 404


class TestNewStatusSync:
    def test_new_status_adds_default_flag_to_employees(self, make_employee, make_status_config):
        employee = make_employee({"change_status_ready": True})

        make_status_config(OrderStatus.PREPARING)
        make_status_config(OrderStatus.IN_DELIVERY)

        employee.refresh_from_db()
        assert employee.order_permissions == {
            "change_status_ready": True,
            "change_any_status": False,
            "change_status_preparing": True,
            "change_status_in_delivery": False,
        }

    def test_existing_values_are_kept(self, make_employee, make_status_config):
        employee = make_employee({"change_status_preparing": False})
        make_status_config(OrderStatus.PREPARING)
        employee.refresh_from_db()
        assert employee.order_permissions["change_status_preparing"] is False

    def test_updating_a_config_does_not_resync(self, make_employee, make_status_config):
        config = make_status_config(OrderStatus.READY)
        employee = make_employee()
        config.status_label = "Prontinho"
        config.save()
        employee.refresh_from_db()
        assert employee.order_permissions == {}

    def test_new_flag_is_effective_for_authorization(
        self, client_for, make_employee, make_status_config, order
    ):
        employee = make_employee()
        make_status_config(OrderStatus.CONFIRMED)

        response = client_for(employee.user_id).post(
            "/api/v1/orders/status/",
            {"orderId": str(order.id), "status": "confirmed"},
            format="json",
        )
        assert response.status_code == 200


class TestTemplateValidation:
    def test_clean_rejects_malformed_template(self, store):
        config = OrderStatusConfig(
            store=store,
            status_key=OrderStatus.READY,
            status_label="Pronto",
            whatsapp_message="{{#if_delivery}}sem fim",
        )
        with pytest.raises(ValidationError) as excinfo:
            config.full_clean()
        assert "whatsapp_message" in excinfo.value.message_dict

    def test_clean_accepts_valid_template(self, store):
        OrderStatusConfig(
            store=store,
            status_key=OrderStatus.READY,
            status_label="Pronto",
            whatsapp_message="{{customer_name}}{{#if_pickup}} retire{{/if_pickup}}",
        ).full_clean()
