"""
FridgeMind API — Request Dependencies
=======================================

What:  The authentication gate shared by every /api route.
How:   `get_current_user` reads the token from `Authorization: Bearer ...`
       (or the `access_token` cookie set by the web app) and resolves it
       through the auth provider. Any failure becomes a bare 401 before the
       route body runs, so no data or upstream call happens for anonymous
       callers.
"""

import logging
from typing import Optional

from fastapi import Request

from fridgemind.exceptions import AuthenticationError, AuthProviderError
from fridgemind.schemas.auth import CurrentUser
from fridgemind.services.auth_service import auth_service

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"


def extract_access_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


async def get_current_user(request: Request) -> CurrentUser:
    """
    Resolve the calling user or raise AuthenticationError (401).

    Provider outages are reported as 401 as well; the reason is logged.
    """
    token = extract_access_token(request)
    if not token:
        raise AuthenticationError(context={"reason": "missing token"})

    if not auth_service.is_configured():
        logger.error("Auth provider not configured; rejecting request")
        raise AuthenticationError(context={"reason": "auth provider not configured"})

    try:
        user = await auth_service.resolve_user(token)
    except AuthProviderError as e:
        raise AuthenticationError(context={"reason": e.message, **e.context}) from e

    request.state.user_id = str(user.id)
    return user
