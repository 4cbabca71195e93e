"""Idempotent database seed helpers for local development environments."""

from __future__ import annotations

import logging

from authserver.services._shared.ports import CredentialVerifier
from authserver.uow.base import UnitOfWorkFactory

LOGGER = logging.getLogger(__name__)

USER_FIXTURES: list[dict[str, str]] = [
    {
        "email": "test@example.com",
        "username": "testuser",
        "name": "Test User",
        "password": "TestPassword123!",
    },
]


def seed_users(uow_factory: UnitOfWorkFactory, hasher: CredentialVerifier) -> dict[str, int]:
    """Create fixture users that do not exist yet (matched by email)."""
    counters = {"created": 0, "existing": 0}
    with uow_factory() as uow:
        for fixture in USER_FIXTURES:
            if uow.users.email_exists(fixture["email"]):
                LOGGER.debug("seed.user.exists email=%s", fixture["email"])
                counters["existing"] += 1
                continue
            uow.users.create(
                email=fixture["email"],
                password_digest=hasher.hash(fixture["password"]),
                username=fixture["username"],
                name=fixture["name"],
            )
            LOGGER.info("seed.user.created email=%s", fixture["email"])
            counters["created"] += 1
    return counters


def run_all(uow_factory: UnitOfWorkFactory, hasher: CredentialVerifier) -> dict[str, dict[str, int]]:
    """Run every seeder and return per-table counters."""
    return {"users": seed_users(uow_factory, hasher)}
