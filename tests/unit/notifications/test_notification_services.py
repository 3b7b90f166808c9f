from __future__ import annotations

import uuid

import pytest

from modules.notifications.exceptions import SubscriptionConflict
from modules.notifications.models import PushSubscription
from modules.notifications.push import PushMessage, PushOutcome, PushReport
from modules.notifications.services import (
    PushNotificationService,
    WhatsAppNotificationService,
    status_push_message,
)
from modules.orders.constants import OrderStatus
from modules.stores.models import OrderStatusConfig

pytestmark = pytest.mark.unit


class RecordingClient:
    def __init__(self) -> None:
        self.calls = []

    def send_text(self, instance, number, text):
        self.calls.append((instance, number, text))
        return {}


def _insert_config(store, status, message):
    # Bypasses ``clean()`` to simulate a template saved before validation existed.
    return OrderStatusConfig.objects.create(
        store=store, status_key=status, status_label=status.label, whatsapp_message=message
    )


class TestWhatsAppNotificationService:
    def test_sends_rendered_template_to_normalized_phone(self, order, make_status_config):
        make_status_config(OrderStatus.CONFIRMED, "Olá {{customer_name}}, pedido {{order_number}}!")
        client = RecordingClient()

        sent = WhatsAppNotificationService(client=client).send_status_message(
            order, OrderStatus.CONFIRMED
        )

        assert sent is True
        assert client.calls == [
            ("pizzaria-teste", "5511987654321", f"Olá Maria Silva, pedido {order.order_number}!")
        ]

    def test_uses_template_of_requested_status(self, order, make_status_config):
        make_status_config(OrderStatus.CONFIRMED, "confirmado")
        make_status_config(OrderStatus.READY, "pronto")
        client = RecordingClient()

        WhatsAppNotificationService(client=client).send_status_message(order, OrderStatus.READY)

        assert [call[2] for call in client.calls] == ["pronto"]

    def test_store_without_instance_skips(self, order, store, make_status_config):
        store.whatsapp_instance = ""
        store.save()
        make_status_config(OrderStatus.CONFIRMED, "oi")
        client = RecordingClient()

        sent = WhatsAppNotificationService(client=client).send_status_message(
            order, OrderStatus.CONFIRMED
        )
        assert sent is False
        assert client.calls == []

    @pytest.mark.parametrize("message, is_active", [("", True), ("   ", True), ("oi", False)])
    def test_missing_or_inactive_template_skips(
        self, order, make_status_config, message, is_active
    ):
        make_status_config(OrderStatus.CONFIRMED, message, is_active=is_active)
        client = RecordingClient()
        assert not WhatsAppNotificationService(client=client).send_status_message(
            order, OrderStatus.CONFIRMED
        )
        assert client.calls == []

    def test_no_config_skips(self, order):
        client = RecordingClient()
        assert not WhatsAppNotificationService(client=client).send_status_message(
            order, OrderStatus.READY
        )

    def test_invalid_stored_template_skips(self, order, store):
        _insert_config(store, OrderStatus.CONFIRMED, "Olá {{nome}}")
        client = RecordingClient()
        assert not WhatsAppNotificationService(client=client).send_status_message(
            order, OrderStatus.CONFIRMED
        )
        assert client.calls == []

    def test_customer_without_phone_skips(self, make_order, make_status_config):
        order = make_order(customer_phone="")
        make_status_config(OrderStatus.CONFIRMED, "oi")
        client = RecordingClient()
        assert not WhatsAppNotificationService(client=client).send_status_message(
            order, OrderStatus.CONFIRMED
        )

    def test_render_returns_none_without_template(self, order):
        assert WhatsAppNotificationService().render_status_message(order, OrderStatus.READY) is None


class FakeSender:
    def __init__(self, status_by_endpoint):
        self.status_by_endpoint = status_by_endpoint
        self.messages = []

    def send(self, targets, message):
        self.messages.append(message)
        return PushReport(
            [PushOutcome(t, status_code=self.status_by_endpoint[t.endpoint]) for t in targets]
        )


def _subscription(store, endpoint, **overrides):
    values = {
        "store": store,
        "user_id": uuid.uuid4(),
        "endpoint": endpoint,
        "p256dh": "p",
        "auth": "a",
    }
    values.update(overrides)
    return PushSubscription.objects.create(**values)


class TestPushNotificationService:
    def test_deactivates_gone_and_stamps_delivered(self, store):
        ok = _subscription(store, "https://push.test/ok")
        gone = _subscription(store, "https://push.test/gone")
        sender = FakeSender({ok.endpoint: 201, gone.endpoint: 410})

        report = PushNotificationService(lambda: sender).notify_store(
            store.id, PushMessage(title="T", body="B", store_id=str(store.id))
        )

        assert report.as_dict() == {"sent": 1, "failed": 1, "total": 2}
        ok.refresh_from_db()
        gone.refresh_from_db()
        assert ok.is_active and ok.last_used_at is not None
        assert not gone.is_active
        assert PushSubscription.objects.filter(id=gone.id).exists()

    def test_inactive_and_foreign_subscriptions_skipped(self, store, owner_id):
        _subscription(store, "https://push.test/off", is_active=False)
        sender = FakeSender({})

        report = PushNotificationService(lambda: sender).notify_store(
            store.id, PushMessage(title="T", body="B", store_id=str(store.id))
        )
        assert report.total == 0
        assert sender.messages == []

    def test_subscribe_reactivates_existing_endpoint(self, store):
        old = _subscription(store, "https://push.test/device", is_active=False)
        user_id = uuid.uuid4()

        subscription = PushNotificationService().subscribe(
            user_id, store, "https://push.test/device", "new-p256dh", "new-auth", "UA" * 200
        )

        assert subscription.id == old.id
        assert subscription.is_active
        assert subscription.user_id == user_id
        assert subscription.p256dh == "new-p256dh"
        assert len(subscription.user_agent) == 300

    def test_subscribe_rejects_endpoint_active_for_another_user(self, store):
        taken = _subscription(store, "https://push.test/device")

        with pytest.raises(SubscriptionConflict):
            PushNotificationService().subscribe(
                uuid.uuid4(), store, taken.endpoint, "other-p256dh", "other-auth"
            )

        taken.refresh_from_db()
        assert taken.p256dh == "p"
        assert taken.is_active

    def test_unsubscribe_only_own_active_subscription(self, store):
        subscription = _subscription(store, "https://push.test/device")
        service = PushNotificationService()

        assert service.unsubscribe(uuid.uuid4(), subscription.endpoint) is False
        assert service.unsubscribe(subscription.user_id, subscription.endpoint) is True
        assert service.unsubscribe(subscription.user_id, subscription.endpoint) is False


def test_status_push_message(order):
    message = status_push_message(order, OrderStatus.READY)
    assert message.title == f"Pedido #{order.order_number}"
    assert message.body == "Maria Silva: ✅ Pronto"
    assert message.order_id == str(order.id)
    assert message.store_id == str(order.store_id)
