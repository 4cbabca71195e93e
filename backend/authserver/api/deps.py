"""Bearer authentication and response helpers shared by the v1 views."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, g, jsonify, request

from authserver.bootstrap import get_auth_service
from authserver.core.errors import Unauthorized
from authserver.services._shared.errors import UnauthorizedError
from authserver.services._shared.ports import TokenClaims

F = TypeVar("F", bound=Callable[..., Any])

AUTH_HEADER_REQUIRED = "Authorization header is required"
BEARER_TOKEN_REQUIRED = "Bearer token is required"


def bearer_token() -> str:
    """Extract the token from ``Authorization: Bearer <token>``.

    :raises Unauthorized: When the header is missing or not a Bearer credential.
    """
    header = request.headers.get("Authorization", "")
    if not header.strip():
        raise Unauthorized(AUTH_HEADER_REQUIRED)
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized(BEARER_TOKEN_REQUIRED)
    return token


def current_claims() -> TokenClaims:
    """Return the access-token claims stored by :func:`require_auth`."""
    return cast(TokenClaims, g.auth_claims)


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token and expose its claims on ``g``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        try:
            g.auth_claims = get_auth_service().tokens.verify_access_token(token)
        except UnauthorizedError as exc:
            raise Unauthorized(exc.message) from exc
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response
