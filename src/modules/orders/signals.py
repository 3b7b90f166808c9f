"""Change-triggered hooks on ``Order``.

Every actual status change writes an ``OrderStatusHistory`` row and,
unless ``notifications_suppressed()`` is active, one outbox row per
notification channel in the same transaction.
"""

from __future__ import annotations

from typing import Optional, Protocol, cast
from uuid import UUID

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from modules.notifications.outbox import enqueue_status_notifications
from modules.orders.events import OrderStatusChanged
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.suppression import notifications_are_suppressed


class _OrderStatusAware(Protocol):
    _previous_status: str | None
    _status_change_notes: str | None
    _status_changed_by: UUID | None


@receiver(pre_save, sender=Order)
def _capture_previous_status(sender, instance: Order, **kwargs) -> None:
    status_instance = cast(_OrderStatusAware, instance)
    if instance._state.adding:
        status_instance._previous_status = None
        return
    previous_status = (
        sender.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
    )
    status_instance._previous_status = previous_status


@receiver(post_save, sender=Order)
def _record_status_change(sender, instance: Order, created: bool, **kwargs) -> None:
    if kwargs.get("raw"):
        return

    status_instance = cast(_OrderStatusAware, instance)
    previous_status: Optional[str] = getattr(status_instance, "_previous_status", None)
    notes = getattr(status_instance, "_status_change_notes", None)
    changed_by = getattr(status_instance, "_status_changed_by", None)
    _clear_transient_status_attrs(instance)

    if not created and previous_status == instance.status:
        return

    suppressed = notifications_are_suppressed()
    OrderStatusHistory.objects.create(
        order=instance,
        old_status=previous_status,
        new_status=instance.status,
        changed_by=changed_by,
        notification_suppressed=suppressed,
        notes=notes if notes is not None else ("Pedido criado" if created else ""),
    )

    # Order placement has its own confirmation flow on the storefront.
    if created or suppressed:
        return

    enqueue_status_notifications(
        OrderStatusChanged(
            aggregate_id=instance.id,
            store_id=instance.store_id,
            old_status=previous_status,
            new_status=instance.status,
            changed_by=changed_by,
        )
    )


def _clear_transient_status_attrs(instance: Order) -> None:
    for attr in ("_previous_status", "_status_change_notes", "_status_changed_by"):
        if hasattr(instance, attr):
            delattr(instance, attr)
