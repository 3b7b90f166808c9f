from __future__ import annotations

import asyncio
import json
import uuid

import pytest

from modules.realtime.cache import ExpiringEventCache
from modules.realtime.events import UPDATE, RowChange
from modules.realtime.listener import DashboardRefetchListener

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class FakeHandle:
    def __init__(self, delay, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Records scheduled callbacks so tests decide when time passes."""

    def __init__(self) -> None:
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    def run_due(self) -> None:
        handles, self.handles = self.handles, []
        for handle in handles:
            if not handle.cancelled:
                handle.callback()


def _event(table="orders", event_id=None) -> RowChange:
    return RowChange(
        aggregate_id=uuid.uuid4(),
        event_id=event_id or uuid.uuid4(),
        table=table,
        event_type=UPDATE,
        store_id=uuid.uuid4(),
    )


@pytest.fixture()
def harness():
    calls = []
    clock = FakeClock()
    loop = FakeLoop()
    listener = DashboardRefetchListener(
        on_refetch=lambda: calls.append(clock.now),
        cache=ExpiringEventCache(clock=clock),
        debounce=2.0,
        visibility_window=3.0,
        clock=clock,
        loop=loop,
    )
    return listener, loop, clock, calls


class TestDebounce:
    def test_burst_coalesces_into_one_refetch(self, harness):
        listener, loop, _, calls = harness

        assert listener.handle(_event()) is True
        listener.handle(_event())
        listener.handle(_event(table="affiliate_earnings"))

        assert len(loop.handles) == 1
        assert loop.handles[0].delay == 2.0
        assert calls == []

        loop.run_due()
        assert len(calls) == 1
        assert not listener.refetch_pending

    def test_new_burst_after_refetch_schedules_again(self, harness):
        listener, loop, _, calls = harness
        listener.handle(_event())
        loop.run_due()
        listener.handle(_event())
        loop.run_due()
        assert len(calls) == 2

    def test_other_tables_ignored(self, harness):
        listener, loop, _, _ = harness
        assert listener.handle(_event(table="products")) is False
        assert loop.handles == []

    def test_duplicate_event_ids_ignored(self, harness):
        listener, loop, _, calls = harness
        event_id = uuid.uuid4()
        assert listener.handle(_event(event_id=event_id)) is True
        loop.run_due()
        assert listener.handle(_event(event_id=event_id)) is False
        assert loop.handles == []
        assert len(calls) == 1


class TestVisibility:
    def test_becoming_visible_refetches_now_and_mutes_window(self, harness):
        listener, loop, clock, calls = harness

        listener.on_visibility_change(True)
        assert calls == [100.0]

        clock.now = 102.9
        assert listener.handle(_event()) is False
        clock.now = 103.0
        assert listener.handle(_event()) is True
        loop.run_due()
        assert len(calls) == 2

    def test_becoming_visible_replaces_pending_refetch(self, harness):
        listener, loop, _, calls = harness
        listener.handle(_event())
        listener.on_visibility_change(True)
        loop.run_due()
        assert len(calls) == 1

    def test_hidden_does_nothing(self, harness):
        listener, _, _, calls = harness
        listener.on_visibility_change(False)
        assert calls == []


class TestClose:
    def test_close_cancels_pending(self, harness):
        listener, loop, _, calls = harness
        listener.handle(_event())
        listener.close()
        loop.run_due()
        assert calls == []


def test_consume_with_real_loop_and_async_callback():
    async def scenario():
        done = asyncio.Event()
        count = 0

        async def on_refetch():
            nonlocal count
            count += 1
            done.set()

        listener = DashboardRefetchListener(
            on_refetch=on_refetch,
            cache=ExpiringEventCache(),
            debounce=0.01,
            visibility_window=0,
        )

        async def messages():
            yield _event().to_message()
            yield "not json"
            yield json.dumps({"table": "orders"})
            yield _event().to_message()

        await listener.consume(messages())
        await asyncio.wait_for(done.wait(), timeout=2)
        listener.close()
        return count

    assert asyncio.run(scenario()) == 1
