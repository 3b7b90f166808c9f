"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from modules.stores.exceptions import Forbidden, StoreNotFound

__all__ = [
    "Forbidden",
    "InvalidStatus",
    "OrderNotFound",
    "OrderStatusLocked",
    "PersistenceError",
    "StoreNotFound",
]


class InvalidStatus(Exception):
    """The requested status is not recognized."""


class OrderStatusLocked(InvalidStatus):
    """The order is delivered or cancelled and cannot move to another status."""


class OrderNotFound(Exception):
    """The requested order does not exist or has been soft-deleted."""


class PersistenceError(Exception):
    """The database rejected the status write."""
