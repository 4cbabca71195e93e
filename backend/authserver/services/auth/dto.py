# authserver/services/auth/dto.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final

from authserver.services._shared.ports import RefreshTokenRecord, TokenPair, UserRecord


class _Unset:
    """Marker for "field not provided" in partial updates (distinct from ``None``)."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignupIn:
    """
    Input DTO for signup.

    :param email: User email (already validated).
    :type email: str
    :param password: Raw password (to be hashed).
    :type password: str
    :param username: Optional unique handle.
    :type username: str | None
    :param name: Optional display name.
    :type name: str | None
    :param phone: Optional E.164 phone number.
    :type phone: str | None
    """

    email: str
    password: str
    username: str | None = None
    name: str | None = None
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Refresh JWT to discard; ``None`` makes logout a no-op.
    :type refresh_token: str | None
    """

    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class ProfileUpdateIn:
    """
    Partial profile update. Fields left as :data:`UNSET` are not touched;
    an explicit ``None`` clears the field.
    """

    username: str | None | _Unset = UNSET
    name: str | None | _Unset = UNSET
    phone: str | None | _Unset = UNSET

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were provided."""
        provided = {"username": self.username, "name": self.name, "phone": self.phone}
        return {k: v for k, v in provided.items() if v is not UNSET}


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserProfileOut:
    """
    Sanitized user projection. Never carries the password digest.
    """

    id: str
    email: str
    username: str | None
    name: str | None
    phone: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, user: UserRecord) -> UserProfileOut:
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            name=user.name,
            phone=user.phone,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@dataclass(frozen=True, slots=True)
class AuthResultOut:
    """
    Output of signup and login.

    :param user: Sanitized profile of the authenticated user.
    :param tokens: Newly issued access/refresh pair.
    """

    user: UserProfileOut
    tokens: TokenPair

    @property
    def access_token(self) -> str:
        return self.tokens.access_token

    @property
    def refresh_token(self) -> str:
        return self.tokens.refresh_token


@dataclass(frozen=True, slots=True)
class RefreshTokenOut:
    """
    Operator-facing summary of a stored refresh token.

    ``fingerprint`` is a short SHA-256 prefix; the token itself is never exposed.
    """

    fingerprint: str
    created_at: datetime
    expires_at: datetime
    is_revoked: bool

    @classmethod
    def from_record(cls, record: RefreshTokenRecord) -> RefreshTokenOut:
        return cls(
            fingerprint=hashlib.sha256(record.token.encode("utf-8")).hexdigest()[:12],
            created_at=record.created_at,
            expires_at=record.expires_at,
            is_revoked=record.is_revoked,
        )
