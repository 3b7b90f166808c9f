"""Notification use-cases: WhatsApp status messages and Web Push."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.notifications.exceptions import SubscriptionConflict, TemplateError
from modules.notifications.models import PushSubscription
from modules.notifications.phone import normalize_phone
from modules.notifications.push import PushMessage, PushReport, PushTarget, WebPushSender
from modules.notifications.templating import build_message_context, parse_template
from modules.notifications.whatsapp import EvolutionWhatsAppClient
from modules.orders.constants import STATUS_DISPLAY, OrderStatus
from modules.stores.repositories.django_repository import StoreDjangoRepository

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.stores.models import Store
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class WhatsAppNotificationService:
    """Renders a store's status template for an order and sends it."""

    def __init__(
        self,
        client: Optional[EvolutionWhatsAppClient] = None,
        store_repository: Optional[IStoreRepository] = None,
    ) -> None:
        self._client = client
        self._stores = store_repository or StoreDjangoRepository()

    @property
    def client(self) -> EvolutionWhatsAppClient:
        if self._client is None:
            self._client = EvolutionWhatsAppClient()
        return self._client

    def render_status_message(self, order: Order, status: OrderStatus) -> Optional[str]:
        """Message for *status*, or ``None`` when the store has none configured.

        Raises:
            TemplateError: the stored template is malformed.
        """
        config = self._stores.get_status_config(order.store_id, status)
        if config is None or not config.is_active or not config.whatsapp_message.strip():
            return None
        template = parse_template(config.whatsapp_message)
        return template.render(build_message_context(order, order.store))

    def send_status_message(self, order: Order, status: OrderStatus) -> bool:
        """Send the status message; ``False`` when there is nothing to send.

        Raises:
            GatewayError: the gateway failed (the caller decides on retries).
        """
        store = order.store
        log = logger.bind(order_id=str(order.id), store_id=str(store.id), status=str(status))
        if not store.has_whatsapp:
            log.info("whatsapp.skipped", reason="store_without_instance")
            return False

        try:
            text = self.render_status_message(order, status)
        except TemplateError as exc:
            log.error("whatsapp.skipped", reason="invalid_template", error=str(exc))
            return False
        if text is None:
            log.info("whatsapp.skipped", reason="no_template")
            return False

        number = normalize_phone(order.customer_phone)
        if not number:
            log.warning("whatsapp.skipped", reason="missing_phone")
            return False

        self.client.send_text(store.whatsapp_instance, number, text)
        return True


def status_push_message(order: Order, status: str) -> PushMessage:
    return PushMessage(
        title=f"Pedido #{order.order_number}",
        body=f"{order.customer_name}: {STATUS_DISPLAY.get(status, status)}",
        store_id=str(order.store_id),
        order_id=str(order.id),
    )


class PushNotificationService:
    """Fan-out to a store's active subscriptions with lazy pruning."""

    def __init__(
        self, sender_factory: Optional[Callable[[], WebPushSender]] = None
    ) -> None:
        self._sender_factory = sender_factory or WebPushSender

    def notify_store(self, store_id: UUID, message: PushMessage) -> PushReport:
        subscriptions = list(PushSubscription.objects.active_for_store(store_id))
        if not subscriptions:
            logger.info("push.no_subscriptions", store_id=str(store_id))
            return PushReport()

        targets = [PushTarget(s.id, s.endpoint, s.p256dh, s.auth) for s in subscriptions]
        report = self._sender_factory().send(targets, message)

        now = timezone.now()
        gone_ids = [target.id for target in report.gone]
        if gone_ids:
            PushSubscription.objects.filter(id__in=gone_ids).update(
                is_active=False, updated_at=now
            )
            logger.info(
                "push.subscription_deactivated",
                store_id=str(store_id),
                count=len(gone_ids),
            )
        delivered_ids = [o.target.id for o in report.outcomes if o.ok]
        if delivered_ids:
            PushSubscription.objects.filter(id__in=delivered_ids).update(last_used_at=now)
        return report

    @transaction.atomic
    def subscribe(
        self,
        user_id: UUID,
        store: Store,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_agent: str = "",
    ) -> PushSubscription:
        """Create or re-activate the subscription for *endpoint*.

        An inactive endpoint may be claimed by anyone with store access.

        Raises:
            SubscriptionConflict: the endpoint is active for another user.
        """
        existing = (
            PushSubscription.objects.select_for_update().filter(endpoint=endpoint).first()
        )
        if existing is not None and existing.is_active and existing.user_id != user_id:
            logger.warning(
                "push.subscription_conflict",
                subscription_id=str(existing.id),
                store_id=str(store.id),
            )
            raise SubscriptionConflict("Este dispositivo já está inscrito por outro usuário.")

        subscription, created = PushSubscription.objects.update_or_create(
            endpoint=endpoint,
            defaults={
                "store": store,
                "user_id": user_id,
                "p256dh": p256dh,
                "auth": auth,
                "user_agent": user_agent[:300],
                "is_active": True,
            },
        )
        logger.info(
            "push.subscribed",
            subscription_id=str(subscription.id),
            store_id=str(store.id),
            created=created,
        )
        return subscription

    def unsubscribe(self, user_id: UUID, endpoint: str) -> bool:
        updated = PushSubscription.objects.filter(
            endpoint=endpoint, user_id=user_id, is_active=True
        ).update(is_active=False, updated_at=timezone.now())
        if updated:
            logger.info("push.unsubscribed", user_id=str(user_id))
        return bool(updated)
