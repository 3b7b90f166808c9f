"""Tasks assíncronas de entrega de notificações (outbox)."""

from __future__ import annotations

from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.notifications.dispatcher import deliver

logger = structlog.get_logger(__name__)

MAX_BACKOFF_SECONDS = 3600


def backoff_seconds(retry_count: int) -> int:
    """30s, 60s, 120s, ... capped at one hour."""
    return min(30 * 2 ** max(retry_count - 1, 0), MAX_BACKOFF_SECONDS)


def process_outbox_event(event_id: str) -> bool:
    """Deliver one outbox row under a row lock.

    Returns ``True`` when the row still needs another attempt.  Rows that
    are already published, exhausted, waiting out their backoff or locked
    by another worker are left alone.
    """
    with transaction.atomic():
        event = (
            OutboxEvent.objects.select_for_update(skip_locked=True)
            .filter(id=event_id)
            .first()
        )
        if event is None or event.is_published:
            return False
        if event.retry_count >= settings.OUTBOX_MAX_RETRIES:
            return False
        if event.is_backing_off:
            logger.debug("outbox.backing_off", event_id=str(event.id))
            return False

        structlog.contextvars.bind_contextvars(
            correlation_id=event.payload.get("correlation_id") or str(event.id)
        )
        log = logger.bind(
            event_id=str(event.id), topic=event.topic, aggregate_id=event.aggregate_id
        )
        try:
            with transaction.atomic():
                deliver(event)
        except Exception as exc:  # noqa: BLE001
            event.mark_as_failed(
                f"{type(exc).__name__}: {exc}",
                retry_in=backoff_seconds(event.retry_count + 1),
            )
            log.warning(
                "outbox.delivery_failed",
                error=str(exc),
                retry_count=event.retry_count,
            )
            return event.retry_count < settings.OUTBOX_MAX_RETRIES

        event.mark_as_published()
        log.info("outbox.delivered")
        return False


@shared_task(bind=True, name="notifications.deliver_outbox_event")
def deliver_outbox_event(self, event_id: str) -> None:
    try:
        retry = process_outbox_event(event_id)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")

    if retry:
        event = OutboxEvent.objects.filter(id=event_id).only("retry_count").first()
        countdown = backoff_seconds(event.retry_count if event else 1)
        raise self.retry(countdown=countdown, max_retries=settings.OUTBOX_MAX_RETRIES)


@shared_task(name="notifications.deliver_pending_outbox_events")
def deliver_pending_outbox_events() -> int:
    """Periodic sweep re-dispatching rows left undelivered.

    Pending rows are picked up once older than one sweep interval, so
    fresh rows stay with the task scheduled at commit time.  Failed rows
    wait until their ``next_attempt_at``.
    """
    cutoff = timezone.now() - timedelta(seconds=settings.OUTBOX_SWEEP_INTERVAL)
    event_ids = list(
        OutboxEvent.objects.due(settings.OUTBOX_MAX_RETRIES, stale_before=cutoff)
        .values_list("id", flat=True)[: settings.OUTBOX_BATCH_SIZE]
    )
    for event_id in event_ids:
        deliver_outbox_event.delay(str(event_id))

    if event_ids:
        logger.info("outbox.sweep_dispatched", count=len(event_ids))
    return len(event_ids)
