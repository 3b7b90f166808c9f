"""Realtime publishers.

``REALTIME_PUBLISHER`` names the class to use: Redis pub/sub in
production, an in-memory recorder in tests and local development.
Publishing is best effort; a Redis outage is logged, never raised.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import List

import structlog
from django.conf import settings
from django.utils.module_loading import import_string
from django_redis import get_redis_connection
from redis.exceptions import RedisError

from modules.realtime.events import RowChange

logger = structlog.get_logger(__name__)


class RealtimePublisher(ABC):
    @abstractmethod
    def publish(self, event: RowChange) -> None:
        """Deliver *event* to the store's channel."""


class RedisRealtimePublisher(RealtimePublisher):
    def __init__(self, alias: str = "default") -> None:
        self.alias = alias

    def publish(self, event: RowChange) -> None:
        try:
            receivers = get_redis_connection(self.alias).publish(
                event.channel, event.to_message()
            )
        except RedisError as exc:
            logger.warning(
                "realtime.publish_failed",
                channel=event.channel,
                table=event.table,
                error=str(exc),
            )
            return
        logger.debug("realtime.published", channel=event.channel, receivers=receivers)


class InMemoryRealtimePublisher(RealtimePublisher):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[RowChange] = []

    def publish(self, event: RowChange) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[RowChange]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


@lru_cache(maxsize=None)
def _load_publisher(path: str) -> RealtimePublisher:
    return import_string(path)()


def get_publisher() -> RealtimePublisher:
    return _load_publisher(settings.REALTIME_PUBLISHER)
