"""Publish row changes of orders and commissions after commit."""

from __future__ import annotations

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from modules.affiliates.models import AffiliateEarning
from modules.orders.models import Order
from modules.realtime.events import INSERT, UPDATE, RowChange
from modules.realtime.publishers import get_publisher


def _publish_on_commit(event: RowChange) -> None:
    transaction.on_commit(lambda: get_publisher().publish(event), robust=True)


@receiver(post_save, sender=Order)
def _order_changed(sender, instance: Order, created: bool, **kwargs) -> None:
    if kwargs.get("raw"):
        return
    _publish_on_commit(
        RowChange(
            aggregate_id=instance.id,
            table=Order._meta.db_table,
            event_type=INSERT if created else UPDATE,
            store_id=instance.store_id,
        )
    )


@receiver(post_save, sender=AffiliateEarning)
def _earning_changed(sender, instance: AffiliateEarning, created: bool, **kwargs) -> None:
    if kwargs.get("raw"):
        return
    _publish_on_commit(
        RowChange(
            aggregate_id=instance.id,
            table=AffiliateEarning._meta.db_table,
            event_type=INSERT if created else UPDATE,
            store_id=instance.store_id,
        )
    )
