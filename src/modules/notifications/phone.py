"""Phone number normalization for the WhatsApp gateway."""

from __future__ import annotations

import re

COUNTRY_CODE = "55"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str | None) -> str:
    """Digits only, with the Brazilian country code prepended when absent.

    Returns ``""`` when there are no digits at all.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if not digits:
        return ""
    if not digits.startswith(COUNTRY_CODE):
        digits = COUNTRY_CODE + digits
    return digits
