"""Store domain exceptions.

Raised by the authorization gate and store services; views translate
them into HTTP responses.
"""

from __future__ import annotations


class StoreNotFound(Exception):
    """The store does not exist or has been soft-deleted."""


class Forbidden(Exception):
    """The authenticated user lacks the permission for this action."""
