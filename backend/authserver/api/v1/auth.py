"""Authentication endpoints using the service layer."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from flask import Blueprint, current_app, request

from authserver.api.deps import current_claims, json_response, require_auth
from authserver.bootstrap import get_auth_service
from authserver.core.extensions import limiter
from authserver.schemas import (
    AuthResultSchema,
    LoginSchema,
    LogoutSchema,
    ProfileUpdateSchema,
    RefreshTokenSchema,
    SignupSchema,
    TokenPairSchema,
    UserProfileSchema,
)
from authserver.services._shared.base import BaseService
from authserver.services._shared.errors import ServiceError

bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
logout_schema = LogoutSchema()
profile_update_schema = ProfileUpdateSchema()
auth_result_schema = AuthResultSchema()
token_pair_schema = TokenPairSchema()
user_schema = UserProfileSchema()

T = TypeVar("T")


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per 15 minutes"))


def _signup_rate_limit() -> str:
    return str(current_app.config.get("AUTH_SIGNUP_RATE_LIMIT", "3 per hour"))


def _call(fn: Callable[..., T], *args: Any) -> T:
    """Invoke a service method translating service errors into API errors."""
    try:
        return fn(*args)
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc


def _body() -> dict[str, Any]:
    return request.get_json(silent=True) or {}


@bp.post("/signup")
@limiter.limit(_signup_rate_limit)
def signup():
    """Register a new user and return the profile with a token pair."""

    dto = signup_schema.load(_body())
    result = _call(get_auth_service().signup, dto)
    body = {"data": auth_result_schema.dump(result), "message": "User registered successfully"}
    return json_response(body, status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
def login():
    """Authenticate credentials and issue a token pair."""

    dto = login_schema.load(_body())
    result = _call(get_auth_service().login, dto)
    return json_response({"data": auth_result_schema.dump(result), "message": "Login successful"})


@bp.post("/refresh")
def refresh():
    """Rotate a refresh token into a new pair."""

    dto = refresh_schema.load(_body())
    tokens = _call(get_auth_service().refresh_token, dto)
    return json_response(
        {"data": token_pair_schema.dump(tokens), "message": "Token refreshed successfully"}
    )


@bp.post("/logout")
@require_auth
def logout():
    """Discard the supplied refresh token. Always succeeds for authenticated callers."""

    dto = logout_schema.load(_body())
    _call(get_auth_service().logout, dto)
    return json_response({"data": None, "message": "Logout successful"})


@bp.get("/user/profile")
@require_auth
def get_profile():
    """Return the authenticated user's profile."""

    profile = _call(get_auth_service().get_profile, current_claims().user_id)
    return json_response({"data": {"user": user_schema.dump(profile)}})


@bp.put("/user/profile")
@require_auth
def update_profile():
    """Apply a partial profile update for the authenticated user."""

    dto = profile_update_schema.load(_body())
    profile = _call(get_auth_service().update_profile, current_claims().user_id, dto)
    return json_response(
        {"data": {"user": user_schema.dump(profile)}, "message": "Profile updated successfully"}
    )
