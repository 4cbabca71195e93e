"""Integration tests for the authentication endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from authserver.models import RefreshToken, User
from freezegun import freeze_time
from tests.helpers.utils import (
    DEFAULT_PASSWORD,
    LOGIN_URL,
    LOGOUT_URL,
    PROFILE_URL,
    REFRESH_URL,
    SIGNUP_URL,
    bearer,
    signup,
)


# ------------------------------- Signup ----------------------------------- #
def test_signup_returns_profile_and_tokens(client, session):
    resp = client.post(
        SIGNUP_URL,
        json={
            "email": "ana@example.com",
            "password": DEFAULT_PASSWORD,
            "username": "ana",
            "name": "Ana Lopez",
            "phone": "+34600000000",
        },
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["message"] == "User registered successfully"
    user = body["data"]["user"]
    assert user["email"] == "ana@example.com"
    assert user["username"] == "ana"
    assert user["is_active"] is True
    assert "password" not in user and "password_digest" not in user
    assert body["data"]["access_token"] and body["data"]["refresh_token"]

    stored = session.query(User).filter_by(email="ana@example.com").one()
    assert stored.password_digest != DEFAULT_PASSWORD
    assert session.query(RefreshToken).filter_by(user_id=stored.id).count() == 1


def test_signup_duplicate_email_is_409(client):
    signup(client)
    resp = client.post(SIGNUP_URL, json={"email": "ana@example.com", "password": DEFAULT_PASSWORD})

    assert resp.status_code == 409
    problem = resp.get_json()
    assert resp.mimetype == "application/problem+json"
    assert problem["code"] == "conflict"
    assert problem["detail"] == "Email address is already registered"


def test_signup_duplicate_username_is_409(client):
    signup(client, username="ana")
    resp = client.post(
        SIGNUP_URL,
        json={"email": "other@example.com", "password": DEFAULT_PASSWORD, "username": "ana"},
    )
    assert resp.status_code == 409
    assert resp.get_json()["detail"] == "Username is already taken"


def test_signup_validation_errors_are_422(client):
    resp = client.post(SIGNUP_URL, json={"email": "nope", "password": "weak"})

    assert resp.status_code == 422
    problem = resp.get_json()
    assert problem["code"] == "validation_error"
    assert set(problem["details"]["errors"]) == {"email", "password"}


def test_signup_without_body_is_422(client):
    resp = client.post(SIGNUP_URL, data="not json", content_type="text/plain")
    assert resp.status_code == 422


# -------------------------------- Login ----------------------------------- #
def test_login_success(client):
    signup(client)
    resp = client.post(LOGIN_URL, json={"email": "ana@example.com", "password": DEFAULT_PASSWORD})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["email"] == "ana@example.com"
    assert body["data"]["refresh_token"]


def test_login_failures_share_message(client):
    signup(client)
    wrong = client.post(LOGIN_URL, json={"email": "ana@example.com", "password": "Wr0ng!Pass"})
    unknown = client.post(LOGIN_URL, json={"email": "ghost@example.com", "password": "Wr0ng!Pass"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json()["detail"] == unknown.get_json()["detail"] == "Invalid email or password"


def test_login_deactivated_account(client, session):
    signup(client)
    session.query(User).filter_by(email="ana@example.com").update({"is_active": False})
    session.commit()

    resp = client.post(LOGIN_URL, json={"email": "ana@example.com", "password": DEFAULT_PASSWORD})
    assert resp.status_code == 401
    assert resp.get_json()["detail"] == "Account is deactivated"


# ------------------------------- Refresh ---------------------------------- #
def test_refresh_rotates_tokens(client):
    data = signup(client)

    resp = client.post(REFRESH_URL, json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Token refreshed successfully"
    assert set(body["data"]) == {"access_token", "refresh_token"}
    assert body["data"]["refresh_token"] != data["refresh_token"]

    replay = client.post(REFRESH_URL, json={"refresh_token": data["refresh_token"]})
    assert replay.status_code == 401
    assert replay.get_json()["detail"] == "Invalid refresh token"

    chained = client.post(REFRESH_URL, json={"refresh_token": body["data"]["refresh_token"]})
    assert chained.status_code == 200


def test_refresh_requires_token(client):
    resp = client.post(REFRESH_URL, json={})
    assert resp.status_code == 422
    assert resp.get_json()["details"]["errors"]["refresh_token"] == ["Refresh token is required"]


def test_refresh_with_access_token_is_rejected(client):
    data = signup(client)
    resp = client.post(REFRESH_URL, json={"refresh_token": data["access_token"]})
    assert resp.status_code == 401
    assert resp.get_json()["detail"] == "Invalid refresh token"


def test_refresh_expired_token(client, session):
    with freeze_time(datetime.now(UTC) - timedelta(days=8)):
        data = signup(client)

    resp = client.post(REFRESH_URL, json={"refresh_token": data["refresh_token"]})

    assert resp.status_code == 401
    assert resp.get_json()["detail"] == "Refresh token has expired"
    session.expire_all()
    assert session.query(RefreshToken).filter_by(token=data["refresh_token"]).count() == 0


# ------------------------------- Logout ----------------------------------- #
def test_logout_requires_bearer(client):
    missing = client.post(LOGOUT_URL, json={})
    assert missing.status_code == 401
    assert missing.get_json()["detail"] == "Authorization header is required"

    basic = client.post(LOGOUT_URL, json={}, headers={"Authorization": "Basic abc"})
    assert basic.status_code == 401
    assert basic.get_json()["detail"] == "Bearer token is required"

    bad = client.post(LOGOUT_URL, json={}, headers=bearer("garbage"))
    assert bad.status_code == 401
    assert bad.get_json()["detail"] == "Invalid access token"


def test_logout_discards_refresh_token(client):
    data = signup(client)
    resp = client.post(
        LOGOUT_URL,
        json={"refresh_token": data["refresh_token"]},
        headers=bearer(data["access_token"]),
    )
    assert resp.status_code == 200
    assert resp.get_json() == {"data": None, "message": "Logout successful"}

    after = client.post(REFRESH_URL, json={"refresh_token": data["refresh_token"]})
    assert after.status_code == 401


def test_logout_is_idempotent(client):
    data = signup(client)
    headers = bearer(data["access_token"])

    for payload in ({"refresh_token": data["refresh_token"]}, {"refresh_token": "x"}, {}):
        assert client.post(LOGOUT_URL, json=payload, headers=headers).status_code == 200


def test_refresh_token_cannot_authenticate_requests(client):
    data = signup(client)
    resp = client.get(PROFILE_URL, headers=bearer(data["refresh_token"]))
    assert resp.status_code == 401
    assert resp.get_json()["detail"] == "Invalid access token"


# ------------------------------- Profile ---------------------------------- #
def test_get_profile(client):
    data = signup(client, username="ana", name="Ana")
    resp = client.get(PROFILE_URL, headers=bearer(data["access_token"]))

    assert resp.status_code == 200
    user = resp.get_json()["data"]["user"]
    assert user["id"] == data["user"]["id"]
    assert user["username"] == "ana"
    assert "password_digest" not in user


def test_update_profile(client):
    data = signup(client, username="ana", phone="+34600000000")
    resp = client.put(
        PROFILE_URL,
        json={"name": "Ana Maria", "phone": "", "email": "hijack@example.com"},
        headers=bearer(data["access_token"]),
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Profile updated successfully"
    user = body["data"]["user"]
    assert user["name"] == "Ana Maria"
    assert user["phone"] is None
    assert user["username"] == "ana"
    assert user["email"] == "ana@example.com"


def test_update_profile_requires_a_field(client):
    data = signup(client)
    resp = client.put(PROFILE_URL, json={}, headers=bearer(data["access_token"]))

    assert resp.status_code == 422
    assert resp.get_json()["details"]["errors"]["_schema"] == [
        "At least one field must be provided for update"
    ]


def test_update_profile_username_conflict(client):
    signup(client, email="bob@example.com", username="bob")
    data = signup(client, username="ana")

    resp = client.put(PROFILE_URL, json={"username": "bob"}, headers=bearer(data["access_token"]))
    assert resp.status_code == 409
    assert resp.get_json()["detail"] == "Username is already taken"


def test_profile_of_deleted_user_is_404(client, session):
    data = signup(client)
    session.query(User).filter_by(id=data["user"]["id"]).delete()
    session.commit()

    resp = client.get(PROFILE_URL, headers=bearer(data["access_token"]))
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"
