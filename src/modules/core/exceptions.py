"""Project-wide DRF exception handler.

Framework errors (authentication, throttling, parsing, serializer
validation) are rewritten into the same ``{"error": "..."}`` envelope the
domain views return, so clients only ever parse one error shape.
"""

from __future__ import annotations

from typing import Any

import structlog
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            "error": "Parâmetros inválidos.",
            "details": response.data,
        }
    else:
        detail = response.data.get("detail") if isinstance(response.data, dict) else None
        response.data = {"error": str(detail or exc)}

    logger.info(
        "api.error_response",
        status_code=response.status_code,
        exception=type(exc).__name__,
    )
    return response


def error_response(message: str, status_code: int) -> Response:
    """Shortcut used by views when translating domain exceptions."""
    return Response({"error": message}, status=status_code)
