"""Tiny helpers shared across test modules."""

from __future__ import annotations

from typing import Any

SIGNUP_URL = "/api/v1/auth/signup"
LOGIN_URL = "/api/v1/auth/login"
REFRESH_URL = "/api/v1/auth/refresh"
LOGOUT_URL = "/api/v1/auth/logout"
PROFILE_URL = "/api/v1/auth/user/profile"

DEFAULT_PASSWORD = "Str0ng!Pass"


def bearer(token: str) -> dict[str, str]:
    """Return an ``Authorization`` header carrying ``token``."""
    return {"Authorization": f"Bearer {token}"}


def signup(client, email: str = "ana@example.com", **fields: Any) -> dict[str, Any]:
    """Register a user through the API and return the ``data`` envelope.

    Parameters
    ----------
    client: flask.testing.FlaskClient
        Test client bound to the application.
    email: str
        Email of the new account.
    **fields:
        Extra signup fields (``username``, ``name``, ``phone``, ``password``).

    Returns
    -------
    dict[str, Any]
        ``{"user": ..., "access_token": ..., "refresh_token": ...}``.
    """
    payload = {"email": email, "password": DEFAULT_PASSWORD, **fields}
    resp = client.post(SIGNUP_URL, json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]
