"""Outbox channel handlers.

``deliver(event)`` routes an ``OutboxEvent`` to the handler of its
``topic``.  Handlers raise on transient failures so the worker can retry,
and return quietly when there is nothing to send.
"""

from __future__ import annotations

from typing import Callable, Dict

import structlog

from modules.core.models import OutboxEvent
from modules.notifications.outbox import PUSH_CHANNEL, WHATSAPP_CHANNEL
from modules.notifications.services import (
    PushNotificationService,
    WhatsAppNotificationService,
    status_push_message,
)
from modules.orders.constants import OrderStatus
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class UnknownChannel(Exception):
    """No handler is registered for the outbox topic."""


def _load_order(event: OutboxEvent) -> Order | None:
    order = (
        Order.objects.alive()
        .select_related("store")
        .prefetch_related("items__addons", "items__flavors")
        .filter(id=event.aggregate_id)
        .first()
    )
    if order is None:
        logger.warning("outbox.order_missing", event_id=str(event.id))
    return order


def handle_whatsapp(event: OutboxEvent) -> None:
    order = _load_order(event)
    if order is None:
        return
    WhatsAppNotificationService().send_status_message(
        order, OrderStatus(event.payload["new_status"])
    )


def handle_push(event: OutboxEvent) -> None:
    order = _load_order(event)
    if order is None:
        return
    message = status_push_message(order, event.payload["new_status"])
    PushNotificationService().notify_store(order.store_id, message)


CHANNEL_HANDLERS: Dict[str, Callable[[OutboxEvent], None]] = {
    WHATSAPP_CHANNEL: handle_whatsapp,
    PUSH_CHANNEL: handle_push,
}


def deliver(event: OutboxEvent) -> None:
    handler = CHANNEL_HANDLERS.get(event.topic)
    if handler is None:
        raise UnknownChannel(f"No handler for outbox topic {event.topic!r}")
    handler(event)
