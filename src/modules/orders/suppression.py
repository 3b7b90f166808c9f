"""Context-scoped switch for change-triggered notifications.

The status write happens inside ``notifications_suppressed()`` when the
caller asked to skip notifications; the ``post_save`` hook in
``modules.orders.signals`` reads the flag and writes no outbox rows.
Being a ``ContextVar``, the flag never leaks to other threads or tasks.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_suppressed: ContextVar[bool] = ContextVar("order_notifications_suppressed", default=False)


def notifications_are_suppressed() -> bool:
    return _suppressed.get()


@contextmanager
def notifications_suppressed(active: bool = True) -> Iterator[None]:
    token = _suppressed.set(active)
    try:
        yield
    finally:
        _suppressed.reset(token)
