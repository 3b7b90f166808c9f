"""Writing notification outbox rows.

One ``OutboxEvent`` per channel is created in the caller's transaction.
Delivery is scheduled only once that transaction commits; a broker
outage at that point leaves the rows ``PENDING`` for the sweeper.
"""

from __future__ import annotations

from typing import List

import structlog
from django.db import transaction

from modules.core.middleware import get_correlation_id
from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

WHATSAPP_CHANNEL = "whatsapp"
PUSH_CHANNEL = "push"
CHANNELS = (WHATSAPP_CHANNEL, PUSH_CHANNEL)


def enqueue_status_notifications(event: DomainEvent) -> List[OutboxEvent]:
    payload = event.to_payload()
    payload["correlation_id"] = get_correlation_id()

    rows = [
        OutboxEvent.objects.create(
            event_type=event.event_name,
            topic=channel,
            aggregate_id=str(event.aggregate_id),
            payload=payload,
        )
        for channel in CHANNELS
    ]
    event_ids = [str(row.id) for row in rows]
    transaction.on_commit(lambda: schedule_delivery(event_ids), robust=True)

    logger.info(
        "outbox.events_written",
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        count=len(rows),
    )
    return rows


def schedule_delivery(event_ids: List[str]) -> None:
    from modules.notifications.tasks import deliver_outbox_event

    for event_id in event_ids:
        deliver_outbox_event.delay(event_id)
