"""
FridgeMind API — Authentication Gate Tests
============================================

What:  Token extraction, the auth provider client (httpx.MockTransport) and
       the 401 behaviour of protected routes.
"""

import uuid
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from fridgemind.exceptions import AuthenticationError, AuthProviderError
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.eating_out import EatingOutListResponse
from fridgemind.services.auth_service import AuthService


def _auth_service(handler) -> AuthService:
    service = AuthService(base_url="http://auth.test/", api_key="anon")
    service._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return service


class TestAuthService:

    @pytest.mark.asyncio
    async def test_resolves_user(self):
        user_id = uuid.uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/auth/v1/user"
            assert request.headers["Authorization"] == "Bearer tok"
            assert request.headers["apikey"] == "anon"
            return httpx.Response(200, json={"id": str(user_id), "email": "cook@example.com"})

        user = await _auth_service(handler).resolve_user("tok")

        assert user == CurrentUser(id=user_id, email="cook@example.com")

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        service = _auth_service(lambda request: httpx.Response(401, json={"msg": "expired"}))

        with pytest.raises(AuthenticationError):
            await service.resolve_user("tok")

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        service = _auth_service(lambda request: httpx.Response(502))

        with pytest.raises(AuthProviderError):
            await service.resolve_user("tok")

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        service = _auth_service(lambda request: httpx.Response(200, json={"id": "not-a-uuid"}))

        with pytest.raises(AuthProviderError):
            await service.resolve_user("tok")


class TestAuthGate:

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/eating-out"),
            ("GET", "/api/receipts"),
            ("POST", "/api/scan"),
            ("GET", "/api/fatsecret/search?q=banana"),
        ],
    )
    @pytest.mark.asyncio
    async def test_anonymous_requests_are_401(self, anonymous_client, method, path):
        response = await anonymous_client.request(method, path, json={})

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Unauthorized"
        assert set(body) == {"error", "code", "request_id"}

    @pytest.mark.asyncio
    async def test_provider_outage_is_401(self, anonymous_client):
        with patch(
            "fridgemind.dependencies.auth_service.resolve_user",
            AsyncMock(side_effect=AuthProviderError(message="down")),
        ):
            response = await anonymous_client.get(
                "/api/eating-out", headers={"Authorization": "Bearer tok"}
            )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_cookie_token_is_accepted(self, anonymous_client):
        user = CurrentUser(id=uuid.uuid4())
        resolve = AsyncMock(return_value=user)
        list_meals = AsyncMock(return_value=EatingOutListResponse(meals=[]))

        with patch("fridgemind.dependencies.auth_service.resolve_user", resolve), patch(
            "fridgemind.routes.eating_out.eating_out_service.list_meals", list_meals
        ):
            anonymous_client.cookies.set("access_token", "cookie-tok")
            response = await anonymous_client.get("/api/eating-out")

        assert response.status_code == 200
        resolve.assert_awaited_once_with("cookie-tok")
        assert list_meals.await_args.args[1] == user
