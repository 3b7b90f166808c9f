"""Evolution API client for outbound WhatsApp messages.

``POST {EVOLUTION_API_URL}/message/sendText/{instance}`` with the
``apikey`` header and ``{"number", "text"}`` as JSON.  Each store has its
own gateway instance (``Store.whatsapp_instance``).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import structlog
from django.conf import settings

from modules.core.middleware import REQUEST_ID_HEADER, get_correlation_id
from modules.notifications.exceptions import GatewayError

logger = structlog.get_logger(__name__)


class EvolutionWhatsAppClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.EVOLUTION_API_URL).rstrip("/")
        self.api_key = api_key or settings.EVOLUTION_API_KEY
        self.timeout = timeout if timeout is not None else settings.WHATSAPP_TIMEOUT
        self._transport = transport

    def send_text(self, instance: str, number: str, text: str) -> Dict[str, Any]:
        """Send *text* to *number* (already normalized) through *instance*.

        Raises:
            GatewayError: not configured, unreachable, or non-2xx response.
        """
        if not self.base_url or not self.api_key:
            raise GatewayError("Gateway de WhatsApp não configurado.")

        log = logger.bind(instance=instance, number=number)
        headers = {"apikey": self.api_key}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers[REQUEST_ID_HEADER] = correlation_id

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/message/sendText/{instance}",
                    headers=headers,
                    json={"number": number, "text": text},
                )
        except httpx.HTTPError as exc:
            log.error("whatsapp.gateway_unreachable", error=str(exc))
            raise GatewayError(f"Falha ao contatar o gateway de WhatsApp: {exc}") from exc

        if not response.is_success:
            log.error(
                "whatsapp.gateway_rejected",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise GatewayError(
                f"Gateway de WhatsApp respondeu {response.status_code}.",
                status_code=response.status_code,
            )

        log.info("whatsapp.sent", status_code=response.status_code)
        try:
            return response.json()
        except ValueError:
            return {}
