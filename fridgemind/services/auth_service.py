"""
FridgeMind API — Auth Provider Client
=======================================

What:  Resolves a bearer token to a user by asking the auth provider.
Why:   Sessions are issued by the hosted auth service; this API only verifies
       them. No password or token handling lives here.
How:   GET {AUTH_URL}/auth/v1/user with the caller's token and the project
       API key. 200 → user, 401/403 → rejected token, anything else → provider
       failure.
"""

import logging
import uuid
from typing import Optional

import httpx

from fridgemind.config import settings
from fridgemind.exceptions import AuthenticationError, AuthProviderError
from fridgemind.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)


class AuthService:
    """Thin async client for the auth provider's user endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.auth_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.auth_api_key
        self._client = httpx.AsyncClient(timeout=timeout or settings.auth_timeout)

    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def resolve_user(self, access_token: str) -> CurrentUser:
        """
        Look up the user that owns `access_token`.

        Raises:
            AuthenticationError: The provider rejected the token.
            AuthProviderError: The provider is unreachable or answered oddly.
        """
        try:
            response = await self._client.get(
                f"{self.base_url}/auth/v1/user",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "apikey": self.api_key,
                },
            )
        except httpx.RequestError as e:
            logger.error("Auth provider request failed: %s", str(e))
            raise AuthProviderError(
                message="Auth provider unreachable",
                context={"error_type": type(e).__name__},
            ) from e

        if response.status_code in (401, 403):
            raise AuthenticationError(context={"reason": "token rejected"})

        if response.status_code != 200:
            logger.error("Auth provider returned %d", response.status_code)
            raise AuthProviderError(
                message="Auth provider error",
                context={"status": response.status_code},
            )

        try:
            payload = response.json()
            return CurrentUser(id=uuid.UUID(str(payload["id"])), email=payload.get("email"))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthProviderError(
                message="Malformed auth provider response",
                context={"error_type": type(e).__name__},
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
