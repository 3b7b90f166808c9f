"""Notification exceptions."""

from __future__ import annotations


class TemplateError(ValueError):
    """A WhatsApp message template could not be parsed."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (posição {position})"
        super().__init__(message)


class GatewayError(Exception):
    """The messaging gateway was unreachable or rejected the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PushConfigurationError(Exception):
    """VAPID keys are missing or malformed."""


class SubscriptionConflict(Exception):
    """The push endpoint is an active subscription of another user."""
