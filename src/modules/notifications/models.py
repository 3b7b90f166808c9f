"""Web Push subscriptions.

Rows are never deleted: a 404/410 from the push service flips
``is_active`` off, and subscribing the same endpoint again re-activates it.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class PushSubscriptionQuerySet(models.QuerySet):
    def active_for_store(self, store_id) -> PushSubscriptionQuerySet:
        return self.filter(store_id=store_id, is_active=True)


class PushSubscription(BaseModel):
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="push_subscriptions",
    )
    user_id = models.UUIDField(db_index=True)
    endpoint = models.URLField(max_length=500, unique=True)
    p256dh = models.CharField(max_length=200)
    auth = models.CharField(max_length=100)
    user_agent = models.CharField(max_length=300, blank=True, default="")
    is_active = models.BooleanField(default=True)
    last_used_at = models.DateTimeField(null=True, blank=True, default=None)

    objects = PushSubscriptionQuerySet.as_manager()

    class Meta:
        db_table = "push_subscriptions"
        indexes = [
            models.Index(fields=["store", "is_active"], name="push_store_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.store_id} ({'on' if self.is_active else 'off'})"
