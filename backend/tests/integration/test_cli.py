"""Tests for the Flask CLI command groups."""

from __future__ import annotations

from authserver.models import RefreshToken, User
from authserver.seeds.seed_data import USER_FIXTURES
from tests.factories.user import RefreshTokenFactory, UserFactory


def test_seed_is_idempotent(runner, session):
    first = runner.invoke(args=["seed", "run"])
    second = runner.invoke(args=["seed", "run"])

    assert first.exit_code == 0, first.output
    assert "users: created=1 existing=0" in first.output
    assert second.exit_code == 0, second.output
    assert "users: created=0 existing=1" in second.output
    assert session.query(User).filter_by(email=USER_FIXTURES[0]["email"]).count() == 1


def test_seeded_user_can_log_in(runner, client):
    runner.invoke(args=["seed", "run"])
    fixture = USER_FIXTURES[0]

    resp = client.post(
        "/api/v1/auth/login",
        json={"email": fixture["email"], "password": fixture["password"]},
    )
    assert resp.status_code == 200


def test_users_deactivate(runner, session):
    user = UserFactory(email="ops@example.com")
    RefreshTokenFactory.create_batch(2, user=user)

    result = runner.invoke(args=["users", "deactivate", "ops@example.com"])

    assert result.exit_code == 0, result.output
    assert "Deactivated ops@example.com; removed 2 refresh token(s)." in result.output
    session.expire_all()
    assert session.query(User).filter_by(email="ops@example.com").one().is_active is False
    assert session.query(RefreshToken).count() == 0


def test_users_deactivate_unknown(runner):
    result = runner.invoke(args=["users", "deactivate", "ghost@example.com"])
    assert result.exit_code != 0
    assert "No user with email 'ghost@example.com'." in result.output


def test_tokens_list_and_purge(runner):
    user = UserFactory(email="ops@example.com")
    RefreshTokenFactory(user=user, is_revoked=True)
    RefreshTokenFactory(user=user)

    listed = runner.invoke(args=["tokens", "list", "ops@example.com"])
    assert listed.exit_code == 0, listed.output
    assert "revoked" in listed.output
    assert "active" in listed.output
    assert "refresh-token-" not in listed.output

    purged = runner.invoke(args=["tokens", "purge"])
    assert purged.exit_code == 0, purged.output
    assert "Purged 1 refresh token(s)." in purged.output


def test_tokens_list_empty(runner):
    UserFactory(email="ops@example.com")
    result = runner.invoke(args=["tokens", "list", "ops@example.com"])
    assert result.output.strip() == "(no refresh tokens)"
