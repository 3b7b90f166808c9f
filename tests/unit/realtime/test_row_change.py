from __future__ import annotations

import json
import uuid

import pytest

from modules.realtime.events import INSERT, RowChange, channel_for_store

pytestmark = pytest.mark.unit


def test_message_round_trip_keeps_identity():
    event = RowChange(
        aggregate_id=uuid.uuid4(), table="orders", event_type=INSERT, store_id=uuid.uuid4()
    )
    message = json.loads(event.to_message())

    assert message["record_id"] == str(event.aggregate_id)
    assert "aggregate_id" not in message
    assert "event_name" not in message

    restored = RowChange.from_message(event.to_message())
    assert restored == event


def test_channel_is_per_store():
    store_id = uuid.uuid4()
    event = RowChange(aggregate_id=uuid.uuid4(), table="orders", event_type=INSERT, store_id=store_id)
    assert event.channel == channel_for_store(store_id) == f"realtime:store:{store_id}"
