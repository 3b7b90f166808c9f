"""Web Push delivery (VAPID + RFC 8291 ``aes128gcm``).

Each subscription gets its own encrypted body and its own VAPID token
(the JWT audience is the endpoint origin).  Endpoints are contacted
concurrently; one failure never affects the others.  Endpoints answering
404 or 410 are gone for good and are reported back so the caller can
deactivate them.
"""

from __future__ import annotations

import asyncio
import base64
import json
import os
import struct
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

import httpx
import jwt as pyjwt
import structlog
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from django.conf import settings

from modules.notifications.exceptions import PushConfigurationError

logger = structlog.get_logger(__name__)

RECORD_SIZE = 4096
VAPID_TOKEN_LIFETIME = 12 * 60 * 60
GONE_STATUS_CODES = frozenset({404, 410})

# 16-byte AEAD tag and 1-byte padding delimiter share the single record.
MAX_PLAINTEXT = RECORD_SIZE - 16 - 1


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    value = value.strip()
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


# ---------------------------------------------------------------------------
# Keys and VAPID
# ---------------------------------------------------------------------------


def load_vapid_private_key(value: str) -> ec.EllipticCurvePrivateKey:
    """Accept a base64url raw 32-byte scalar or a base64url PKCS#8 DER key."""
    if not value:
        raise PushConfigurationError("VAPID_PRIVATE_KEY não configurada.")
    try:
        raw = b64url_decode(value)
        if len(raw) == 32:
            return ec.derive_private_key(int.from_bytes(raw, "big"), ec.SECP256R1())
        key = serialization.load_der_private_key(raw, password=None)
    except ValueError as exc:
        raise PushConfigurationError(f"VAPID_PRIVATE_KEY inválida: {exc}") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise PushConfigurationError("VAPID_PRIVATE_KEY deve ser uma chave P-256.")
    return key


def public_key_bytes(key: ec.EllipticCurvePublicKey) -> bytes:
    return key.public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
    )


def vapid_authorization(
    endpoint: str,
    private_key: ec.EllipticCurvePrivateKey,
    subject: str,
    public_key: str,
    now: Optional[int] = None,
) -> str:
    """``Authorization`` header value for one push endpoint."""
    parts = urlsplit(endpoint)
    claims = {
        "aud": f"{parts.scheme}://{parts.netloc}",
        "exp": int(now if now is not None else time.time()) + VAPID_TOKEN_LIFETIME,
        "sub": subject,
    }
    token = pyjwt.encode(claims, private_key, algorithm="ES256")
    return f"vapid t={token}, k={public_key}"


# ---------------------------------------------------------------------------
# Payload encryption
# ---------------------------------------------------------------------------


def _hkdf(ikm: bytes, salt: bytes, info: bytes, length: int) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def encrypt_payload(
    plaintext: bytes,
    p256dh: str,
    auth: str,
    salt: Optional[bytes] = None,
    server_key: Optional[ec.EllipticCurvePrivateKey] = None,
) -> bytes:
    """Encrypt *plaintext* for one subscription as a single aes128gcm record."""
    if len(plaintext) > MAX_PLAINTEXT:
        raise ValueError(f"Push payload too large ({len(plaintext)} bytes)")

    ua_public = b64url_decode(p256dh)
    auth_secret = b64url_decode(auth)
    salt = salt or os.urandom(16)
    server_key = server_key or ec.generate_private_key(ec.SECP256R1())
    as_public = public_key_bytes(server_key.public_key())

    ua_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), ua_public)
    shared_secret = server_key.exchange(ec.ECDH(), ua_key)

    ikm = _hkdf(shared_secret, auth_secret, b"WebPush: info\x00" + ua_public + as_public, 32)
    cek = _hkdf(ikm, salt, b"Content-Encoding: aes128gcm\x00", 16)
    nonce = _hkdf(ikm, salt, b"Content-Encoding: nonce\x00", 12)

    ciphertext = AESGCM(cek).encrypt(nonce, plaintext + b"\x02", None)
    header = salt + struct.pack("!IB", RECORD_SIZE, len(as_public)) + as_public
    return header + ciphertext


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    store_id: str
    order_id: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None
    tag: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        url = self.url or (f"/orders/{self.order_id}" if self.order_id else "/")
        tag = self.tag or (f"order-{self.order_id}" if self.order_id else f"store-{self.store_id}")
        return {
            "title": self.title,
            "body": self.body,
            "url": url,
            "icon": self.icon or settings.PUSH_DEFAULT_ICON,
            "tag": tag,
            "orderId": self.order_id,
            "storeId": self.store_id,
        }


@dataclass(frozen=True)
class PushTarget:
    """Plain copy of a subscription row, safe to use off the ORM."""

    id: Any
    endpoint: str
    p256dh: str
    auth: str


@dataclass(frozen=True)
class PushOutcome:
    target: PushTarget
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def gone(self) -> bool:
        return self.status_code in GONE_STATUS_CODES


@dataclass
class PushReport:
    outcomes: List[PushOutcome] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.sent

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def gone(self) -> List[PushTarget]:
        return [o.target for o in self.outcomes if o.gone]

    def as_dict(self) -> Dict[str, int]:
        return {"sent": self.sent, "failed": self.failed, "total": self.total}


class WebPushSender:
    def __init__(
        self,
        private_key: Optional[str] = None,
        public_key: Optional[str] = None,
        subject: Optional[str] = None,
        ttl: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._private_key = load_vapid_private_key(private_key or settings.VAPID_PRIVATE_KEY)
        self.public_key = (
            public_key
            or settings.VAPID_PUBLIC_KEY
            or b64url_encode(public_key_bytes(self._private_key.public_key()))
        )
        self.subject = subject or settings.VAPID_SUBJECT
        self.ttl = ttl if ttl is not None else settings.PUSH_TTL
        self.timeout = timeout if timeout is not None else settings.PUSH_TIMEOUT
        self._transport = transport

    def send(self, targets: Sequence[PushTarget], message: PushMessage) -> PushReport:
        """Blocking entry point for sync callers (views, Celery tasks)."""
        if not targets:
            return PushReport()
        return asyncio.run(self.send_many(targets, message))

    async def send_many(
        self, targets: Sequence[PushTarget], message: PushMessage
    ) -> PushReport:
        body = json.dumps(message.to_payload()).encode("utf-8")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            outcomes = await asyncio.gather(
                *(self._send_one(client, target, body) for target in targets)
            )
        report = PushReport(list(outcomes))
        logger.info("push.fanout_finished", store_id=message.store_id, **report.as_dict())
        return report

    async def _send_one(
        self, client: httpx.AsyncClient, target: PushTarget, body: bytes
    ) -> PushOutcome:
        log = logger.bind(subscription_id=str(target.id), endpoint=target.endpoint[:60])
        try:
            content = encrypt_payload(body, target.p256dh, target.auth)
            headers = {
                "Authorization": vapid_authorization(
                    target.endpoint, self._private_key, self.subject, self.public_key
                ),
                "TTL": str(self.ttl),
                "Content-Encoding": "aes128gcm",
                "Content-Type": "application/octet-stream",
            }
            response = await client.post(target.endpoint, content=content, headers=headers)
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("push.send_failed", error=str(exc))
            return PushOutcome(target=target, error=str(exc))

        outcome = PushOutcome(target=target, status_code=response.status_code)
        if outcome.ok:
            log.debug("push.sent", status_code=response.status_code)
        elif outcome.gone:
            log.info("push.endpoint_gone", status_code=response.status_code)
        else:
            log.warning(
                "push.rejected",
                status_code=response.status_code,
                body=response.text[:200],
            )
        return outcome
