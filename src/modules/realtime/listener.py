"""Dashboard-side consumer of row-change events.

``DashboardRefetchListener`` turns a stream of row changes into at most
one refetch per debounce period:

- duplicate deliveries (same ``event_id``) are dropped through the
  injected ``ExpiringEventCache``;
- right after the dashboard becomes visible again it refetches once and
  ignores events for ``visibility_window`` seconds, since reconnecting
  replays changes the refetch already covers;
- the first event of a burst schedules a refetch ``debounce`` seconds
  later; further events join that pending refetch.

Runs on a single asyncio event loop.  ``subscribe_store`` feeds it from
Redis pub/sub.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, Union

import structlog
from django.conf import settings

from modules.realtime.cache import ExpiringEventCache
from modules.realtime.events import RowChange, channel_for_store

logger = structlog.get_logger(__name__)

RefetchCallback = Callable[[], Union[None, Awaitable[None]]]

DEFAULT_TABLES = ("orders", "affiliate_earnings")


class DashboardRefetchListener:
    def __init__(
        self,
        on_refetch: RefetchCallback,
        cache: ExpiringEventCache,
        debounce: Optional[float] = None,
        visibility_window: Optional[float] = None,
        tables: Iterable[str] = DEFAULT_TABLES,
        clock: Callable[[], float] = time.monotonic,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._on_refetch = on_refetch
        self._cache = cache
        self.debounce = (
            debounce if debounce is not None else settings.REALTIME_DEBOUNCE_SECONDS
        )
        self.visibility_window = (
            visibility_window
            if visibility_window is not None
            else settings.REALTIME_VISIBILITY_WINDOW_SECONDS
        )
        self.tables = frozenset(tables)
        self._clock = clock
        self._loop = loop
        self._pending: Optional[asyncio.TimerHandle] = None
        self._ignore_until = 0.0
        self._tasks: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def refetch_pending(self) -> bool:
        return self._pending is not None

    def handle(self, event: RowChange) -> bool:
        """Process one event; ``True`` when it led to a (pending) refetch."""
        if event.table not in self.tables:
            return False
        if self._cache.check_and_add(str(event.event_id)):
            logger.debug("realtime.duplicate_ignored", event_id=str(event.event_id))
            return False
        if self._clock() < self._ignore_until:
            logger.debug("realtime.ignored_after_visibility", event_id=str(event.event_id))
            return False
        self._schedule()
        return True

    def on_visibility_change(self, visible: bool) -> None:
        if not visible:
            return
        self._ignore_until = self._clock() + self.visibility_window
        self._cancel_pending()
        self._fire()

    async def consume(self, messages: AsyncIterator[Any]) -> None:
        async for message in messages:
            try:
                event = RowChange.from_message(message)
            except (KeyError, ValueError, TypeError) as exc:
                logger.warning("realtime.malformed_event", error=str(exc))
                continue
            self.handle(event)

    def close(self) -> None:
        self._cancel_pending()
        for task in list(self._tasks):
            task.cancel()

    def _schedule(self) -> None:
        if self._pending is not None:
            return
        self._pending = self.loop.call_later(self.debounce, self._fire)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        logger.debug("realtime.refetch")
        result = self._on_refetch()
        if inspect.isawaitable(result):
            task = self.loop.create_task(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


async def subscribe_store(redis_url: str, store_id: Any) -> AsyncIterator[str]:
    """Yield raw messages published on a store's realtime channel."""
    from redis import asyncio as aioredis

    client = aioredis.from_url(redis_url, decode_responses=True)
    pubsub = client.pubsub()
    await pubsub.subscribe(channel_for_store(store_id))
    try:
        async for message in pubsub.listen():
            if message.get("type") == "message":
                yield message["data"]
    finally:
        await pubsub.unsubscribe()
        await pubsub.aclose()
        await client.aclose()
