"""Affiliate domain exceptions."""

from __future__ import annotations


class EarningNotFound(Exception):
    """The affiliate earning does not exist."""


class InvalidEarningTransition(Exception):
    """The earning cannot move to the requested status."""
