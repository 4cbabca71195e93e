"""Factory Boy definitions for :class:`User` and :class:`RefreshToken`."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import factory
from authserver.infra.security.bcrypt_hasher import BcryptCredentialVerifier
from authserver.models import RefreshToken, User
from tests.factories import BaseFactory

_hasher = BcryptCredentialVerifier(rounds=4)


class UserFactory(BaseFactory):
    """
    Build persisted :class:`User` instances.

    Notes
    -----
    - Pass ``password=...`` to choose the plaintext; the digest is computed
      with bcrypt at the lowest work factor.
    """

    class Meta:
        model = User

    class Params:
        password = "Passw0rd!"

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"user{n}")
    name = factory.Faker("name")
    phone = None
    is_active = True
    password_digest = factory.LazyAttribute(lambda o: _hasher.hash(o.password))


class RefreshTokenFactory(BaseFactory):
    """Persisted refresh token rows with opaque token strings."""

    class Meta:
        model = RefreshToken

    user = factory.SubFactory(UserFactory)
    token = factory.Sequence(lambda n: f"refresh-token-{n}")
    expires_at = factory.LazyFunction(lambda: datetime.now(UTC) + timedelta(days=7))
    is_revoked = False
