"""Status normalizer: localized or free-form labels to ``OrderStatus``."""

from __future__ import annotations

from typing import Any

from modules.orders.constants import STATUS_ALIASES, OrderStatus
from modules.orders.exceptions import InvalidStatus


def normalize_status(raw: Any) -> OrderStatus:
    """Map *raw* onto the canonical enum.

    Lookup is exact and case-sensitive: first the alias table, then the
    canonical values themselves.  Anything else raises ``InvalidStatus``.
    """
    if not isinstance(raw, str) or not raw:
        raise InvalidStatus("Status inválido.")

    alias = STATUS_ALIASES.get(raw)
    if alias is not None:
        return alias
    if raw in OrderStatus.values:
        return OrderStatus(raw)
    raise InvalidStatus(f"Status inválido: {raw}")
