"""
FridgeMind API — FatSecret Platform API Client
================================================

What:  Authenticated transport for the FatSecret REST API.
How:   OAuth 2.0 client-credentials grant (HTTP Basic with client id/secret,
       scope "basic"). The access token is cached in-process and refreshed
       five minutes before it expires. API calls are
       `GET rest/server.api?method=...&format=json` with the bearer token.

FatSecret reports most errors with HTTP 200 and a body of
`{"error": {"code": ..., "message": ...}}`; those are raised as
FatSecretAPIError carrying the code.

API Documentation: https://platform.fatsecret.com/docs/guides
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from fridgemind.config import settings
from fridgemind.exceptions import NutritionServiceError

logger = logging.getLogger(__name__)

# Refresh the token this long before FatSecret says it expires
TOKEN_REFRESH_MARGIN_SECONDS = 5 * 60

# FatSecret error codes meaning "no such food"
MISSING_FOOD_ERROR_CODES = {106}


class FatSecretAPIError(NutritionServiceError):
    """Error reported inside a FatSecret response body."""

    def __init__(self, code: Optional[int], message: str):
        super().__init__(
            message=f"FatSecret API error {code}: {message}",
            context={"fatsecret_code": code},
        )
        self.code = code


class FatSecretClient:
    """
    Async FatSecret client with token caching.

    One instance is shared by the process, so the token is fetched at most
    once per expiry window regardless of request volume.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client_id = client_id if client_id is not None else settings.fatsecret_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.fatsecret_client_secret
        )
        self.token_url = token_url or settings.fatsecret_token_url
        self.api_url = api_url or settings.fatsecret_api_url
        self._client = httpx.AsyncClient(timeout=timeout or settings.fatsecret_timeout)

        self._access_token: Optional[str] = None
        self._expires_at: float = 0.0
        self._token_lock = asyncio.Lock()

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _token_is_fresh(self) -> bool:
        return (
            self._access_token is not None
            and self._expires_at - time.monotonic() > TOKEN_REFRESH_MARGIN_SECONDS
        )

    async def get_access_token(self) -> str:
        """Return a cached token, fetching a new one when it is near expiry."""
        if self._token_is_fresh():
            return self._access_token

        async with self._token_lock:
            # Another request may have refreshed while we waited
            if self._token_is_fresh():
                return self._access_token

            if not self.is_configured():
                raise NutritionServiceError(message="FatSecret API credentials not configured")

            try:
                response = await self._client.post(
                    self.token_url,
                    auth=(self.client_id, self.client_secret),
                    data={"grant_type": "client_credentials", "scope": "basic"},
                )
            except httpx.RequestError as e:
                logger.error("FatSecret token request failed: %s", e)
                raise NutritionServiceError(
                    message="Failed to connect to FatSecret token endpoint",
                    context={"error_type": type(e).__name__},
                ) from e

            if response.status_code != 200:
                logger.error(
                    "FatSecret token request rejected: %s - %s",
                    response.status_code,
                    response.text[:200],
                )
                raise NutritionServiceError(
                    message="Failed to get FatSecret token",
                    context={"status": response.status_code},
                )

            payload = response.json()
            self._access_token = payload["access_token"]
            self._expires_at = time.monotonic() + float(payload.get("expires_in", 86400))
            logger.info("FatSecret token refreshed (expires in %ss)", payload.get("expires_in"))
            return self._access_token

    async def request(self, method: str, **params: Any) -> Dict[str, Any]:
        """
        Call a FatSecret API method and return the decoded JSON body.

        Raises:
            FatSecretAPIError: The body carries a FatSecret error object.
            NutritionServiceError: Transport failure or non-200 status.
        """
        token = await self.get_access_token()
        query = {key: str(value) for key, value in params.items() if value is not None}
        query.update(method=method, format="json")

        try:
            response = await self._client.get(
                self.api_url,
                params=query,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as e:
            logger.error("FatSecret request %s failed: %s", method, e)
            raise NutritionServiceError(
                message=f"Failed to connect to FatSecret API: {e}",
                context={"method": method, "error_type": type(e).__name__},
            ) from e

        if response.status_code != 200:
            logger.error(
                "FatSecret %s returned %s - %s", method, response.status_code, response.text[:200]
            )
            raise NutritionServiceError(
                message=f"FatSecret API error: {response.status_code}",
                context={"method": method, "status": response.status_code},
            )

        payload = response.json()
        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            code = error.get("code")
            raise FatSecretAPIError(
                code=int(code) if code is not None else None,
                message=error.get("message", "unknown error"),
            )
        return payload

    # ── API methods ───────────────────────────────────────────────────────

    async def search_foods(
        self,
        query: str,
        page: int = 0,
        max_results: int = 20,
        region: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request(
            "foods.search",
            search_expression=query,
            page_number=page,
            max_results=max_results,
            region=region or settings.fatsecret_region,
        )

    async def autocomplete(self, expression: str, max_results: int = 20) -> Dict[str, Any]:
        return await self.request(
            "foods.autocomplete",
            expression=expression,
            max_results=max_results,
        )

    async def get_food(self, food_id: str) -> Dict[str, Any]:
        return await self.request("food.get.v4", food_id=food_id)

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Singleton Instance ────────────────────────────────────────────────────
fatsecret_client = FatSecretClient()
