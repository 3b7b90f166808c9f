"""Bearer JWT authentication for Django REST Framework.

The storefront's identity provider (the hosted auth service) signs access
tokens with HS256 and a shared project secret.  The ``sub`` claim is the
user UUID that stores (``owner_id``) and employees (``user_id``) refer to.

Security decisions
------------------
* **Fail Closed** — a present but invalid header or token returns 401.
* ``algorithms`` is hard-coded to HS256, never derived from the incoming
  token header.
* Audience is always validated; the issuer too when configured.
* No local Django ``User`` row is required.
"""

from __future__ import annotations

from uuid import UUID

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt.exceptions import PyJWTError

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


class StorefrontUser:
    """Lightweight principal built from a verified token payload.

    Views read ``request.user.id`` to make authorisation decisions against
    store ownership and employee records.
    """

    def __init__(self, payload: dict):
        self.payload = payload
        self.id: UUID = UUID(str(payload["sub"]))
        self.email: str = payload.get("email", "")
        self.role: str = payload.get("role", "")

    is_authenticated = True
    is_active = True
    is_anonymous = False

    @property
    def pk(self) -> UUID:
        return self.id

    def __str__(self) -> str:  # pragma: no cover
        return str(self.id)


class SupabaseJWTAuthentication(BaseAuthentication):
    """DRF authentication class that validates HS256 Bearer tokens."""

    keyword = "Bearer"

    # ------------------------------------------------------------------
    # Public API (DRF contract)
    # ------------------------------------------------------------------

    def authenticate(self, request):
        """Return ``(StorefrontUser, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        payload = self._decode_token(token)
        try:
            user = StorefrontUser(payload)
        except (KeyError, ValueError) as exc:
            logger.warning("jwt_invalid_subject")
            raise AuthenticationFailed("Token sem identificação de usuário.") from exc

        logger.info("jwt_authenticated", sub=str(user.id))
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _extract_token(self, header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != self.keyword.lower():
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _decode_token(token: str) -> dict:
        secret = settings.SUPABASE_JWT_SECRET
        if not secret:
            raise AuthenticationFailed("JWT secret is not configured.")

        options = {"require": ["sub", "exp"]}
        kwargs = {"audience": settings.SUPABASE_JWT_AUDIENCE}
        if settings.SUPABASE_JWT_ISSUER:
            kwargs["issuer"] = settings.SUPABASE_JWT_ISSUER

        try:
            payload = pyjwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                options=options,
                **kwargs,
            )
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload
