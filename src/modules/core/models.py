"""Base abstract models and the transactional outbox.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``SoftDeleteModel``: Extends BaseModel with soft-delete via ``deleted_at``.
- ``OutboxEvent``: notification records written in the same transaction as
  the state change that produced them, delivered later by a Celery worker.

Notes:
- ``objects`` on soft-deletable models returns ALL records.  Use
  ``.alive()`` explicitly to exclude soft-deleted rows.
- ``save()`` adds ``updated_at`` to ``update_fields`` when the caller passes
  an explicit list (Django skips ``auto_now`` fields otherwise).
"""

from __future__ import annotations

from datetime import datetime, timedelta

import uuid6
from django.db import models
from django.utils import timezone

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Soft Delete infrastructure
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        """Return only non-deleted records."""
        return self.filter(deleted_at__isnull=True)

    def delete(self) -> tuple[int, dict[str, int]]:
        """Bulk soft-delete: sets ``deleted_at`` + ``updated_at``."""
        now = timezone.now()
        count = self.alive().update(deleted_at=now, updated_at=now)
        return count, {self.model._meta.label: count}


class SoftDeleteManager(models.Manager):
    def get_queryset(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db)

    def alive(self) -> SoftDeleteQuerySet:
        return self.get_queryset().alive()


class SoftDeleteModel(BaseModel):
    """Abstract model with soft-delete via a single ``deleted_at`` timestamp.

    Stores and orders are never physically removed: order history,
    commissions and audit rows keep pointing at them.
    """

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        default=None,
        db_index=True,
    )

    objects = SoftDeleteManager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        """Soft-delete this instance (no-op if already deleted)."""
        if self.is_deleted:
            return 0, {}
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])
        return 1, {self._meta.label: 1}


# ---------------------------------------------------------------------------
# Transactional Outbox
# ---------------------------------------------------------------------------


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


class OutboxQuerySet(models.QuerySet):
    def deliverable(self, max_retries: int) -> OutboxQuerySet:
        """Rows still owed a delivery attempt, oldest first."""
        return self.filter(
            status__in=[EventStatus.PENDING, EventStatus.FAILED],
            retry_count__lt=max_retries,
        ).order_by("created_at")

    def due(self, max_retries: int, stale_before: datetime) -> OutboxQuerySet:
        """Deliverable rows whose turn has come.

        ``PENDING`` rows untouched since *stale_before* (their commit-time
        task was lost) and ``FAILED`` rows whose backoff has elapsed.
        """
        return self.deliverable(max_retries).filter(
            models.Q(status=EventStatus.PENDING, updated_at__lt=stale_before)
            | models.Q(status=EventStatus.FAILED, next_attempt_at__lte=timezone.now())
        )


class OutboxEvent(BaseModel):
    """Transactional outbox row.

    ``topic`` names the delivery channel (``whatsapp``, ``push``); one row
    is written per channel so a retry on one channel never repeats the
    other.  ``aggregate_id`` is the order id.

    Lifecycle:
    1. Written inside the status-change transaction (``PENDING``).
    2. Worker delivers it after commit.
    3. Success -> ``mark_as_published()``.
    4. Failure -> ``mark_as_failed(error, retry_in)`` increments
       ``retry_count`` and sets ``next_attempt_at``; nothing delivers the
       row before that time, up to ``OUTBOX_MAX_RETRIES`` attempts.
    """

    event_type = models.CharField(max_length=100)
    payload = models.JSONField()
    aggregate_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=EventStatus.choices,
        default=EventStatus.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True, default=None)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01
    retry_count = models.PositiveIntegerField(default=0)
    next_attempt_at = models.DateTimeField(null=True, blank=True, default=None)

    objects = OutboxQuerySet.as_manager()

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["event_type"],
                name="outbox_event_type_idx",
            ),
            models.Index(
                fields=["aggregate_id"],
                name="outbox_aggregate_id_idx",
            ),
            models.Index(
                fields=["status", "created_at"],
                name="outbox_status_created_idx",
            ),
            models.Index(
                fields=["status", "next_attempt_at"],
                name="outbox_status_next_attempt_idx",
            ),
        ]

    @property
    def is_published(self) -> bool:
        return self.status == EventStatus.PUBLISHED

    def mark_as_published(self) -> None:
        self.status = EventStatus.PUBLISHED
        self.processed_at = timezone.now()
        self.error_message = None
        self.save(update_fields=["status", "processed_at", "error_message", "updated_at"])

    @property
    def is_backing_off(self) -> bool:
        return self.next_attempt_at is not None and self.next_attempt_at > timezone.now()

    def mark_as_failed(self, error: str, retry_in: float = 0) -> None:
        self.status = EventStatus.FAILED
        self.error_message = error
        self.retry_count += 1
        self.next_attempt_at = timezone.now() + timedelta(seconds=retry_in)
        self.save(
            update_fields=[
                "status",
                "error_message",
                "retry_count",
                "next_attempt_at",
                "updated_at",
            ]
        )

    def __str__(self) -> str:
        return f"{self.event_type}/{self.topic} [{self.status}] ({self.aggregate_id})"
