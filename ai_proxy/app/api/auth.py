"""Pluggable caller authentication.

The relay only needs "who is calling"; how that is established is an
Authenticator's business. HeaderAuthenticator trusts the identity header
set by the hosting platform. AppwriteJWTAuthenticator verifies a session
JWT against the identity service instead.
"""

import logging
from collections.abc import Mapping
from typing import Protocol

from ai_proxy.app.config import Settings
from ai_proxy.app.db.repositories import IdentityService
from ai_proxy.app.errors import AuthenticationError, IdentityServiceError
from ai_proxy.app.models.common import CallerIdentity

logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-appwrite-user-id"
JWT_HEADER = "x-appwrite-jwt"


class Authenticator(Protocol):
    """Resolves the caller identity from inbound request headers."""

    async def authenticate(self, headers: Mapping[str, str]) -> CallerIdentity:
        """Return the caller identity.

        Args:
            headers: Inbound request headers (lower-case names)

        Raises:
            AuthenticationError: If no identity can be established
        """
        ...


class HeaderAuthenticator:
    """Trusts a caller-identity header injected by the hosting platform."""

    def __init__(self, header_name: str = USER_ID_HEADER) -> None:
        self._header_name = header_name.lower()

    async def authenticate(self, headers: Mapping[str, str]) -> CallerIdentity:
        user_id = (headers.get(self._header_name) or "").strip()
        if not user_id:
            raise AuthenticationError("Authentication required")
        return CallerIdentity(user_id=user_id, source="header")


class AppwriteJWTAuthenticator:
    """Verifies a session JWT against the identity service."""

    def __init__(self, identity_service: IdentityService, header_name: str = JWT_HEADER) -> None:
        self._identity_service = identity_service
        self._header_name = header_name.lower()

    async def authenticate(self, headers: Mapping[str, str]) -> CallerIdentity:
        jwt = (headers.get(self._header_name) or "").strip()
        if not jwt:
            raise AuthenticationError("Authentication required")

        try:
            user_id = await self._identity_service.resolve_user_id(jwt)
        except IdentityServiceError as e:
            logger.error(f"JWT verification failed: {e}")
            raise AuthenticationError(
                "Authentication required", message="Session is invalid or expired"
            ) from e

        return CallerIdentity(user_id=user_id, source="jwt")


def build_authenticator(
    settings: Settings, identity_service: IdentityService | None
) -> Authenticator:
    """Pick the authenticator for the configured auth mode.

    Raises:
        ValueError: If jwt mode is configured without an identity service
    """
    if settings.auth_mode == "jwt":
        if identity_service is None:
            raise ValueError("auth_mode=jwt requires an identity service")
        return AppwriteJWTAuthenticator(identity_service)
    return HeaderAuthenticator()
