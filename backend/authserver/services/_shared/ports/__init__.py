"""
authserver.services._shared.ports
=================================

Collection of *ports* (hexagonal interfaces) that define the contracts
between the auth orchestrator and its infrastructure.

Modules
-------
- :mod:`credential_verifier`:
    Defines :class:`~.CredentialVerifier`: one-way password hash/verify.

- :mod:`token_codec`:
    Defines :class:`~.TokenCodec` together with :class:`~.TokenPayload`,
    :class:`~.TokenClaims` and :class:`~.TokenPair`.

- :mod:`user_store`:
    Defines :class:`~.UserStore` and an in-memory implementation.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RefreshTokenView`
    and an in-memory implementation.

Concrete adapters (SQLAlchemy repositories, Redis, bcrypt, PyJWT) implement
these interfaces under ``authserver.repositories`` and ``authserver.infra``.
"""

from __future__ import annotations

from .credential_verifier import CredentialVerifier
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
    RefreshTokenView,
)
from .token_codec import TokenClaims, TokenCodec, TokenPair, TokenPayload
from .user_store import InMemoryUser, InMemoryUserStore, UserRecord, UserStore

__all__ = [
    "CredentialVerifier",
    "TokenCodec",
    "TokenClaims",
    "TokenPair",
    "TokenPayload",
    "UserRecord",
    "UserStore",
    "InMemoryUser",
    "InMemoryUserStore",
    "RefreshTokenRecord",
    "RefreshTokenStore",
    "RefreshTokenView",
    "InMemoryRefreshTokenStore",
]
