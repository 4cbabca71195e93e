from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """
    Identity claims shared by access and refresh tokens.

    :param user_id: Owner user id (``sub`` claim).
    :param email: User email at issuance.
    :param username: Optional username at issuance.
    """

    user_id: str
    email: str
    username: str | None = None


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified claims extracted from a token.

    :ivar token_id: Per-issuance identifier (refresh tokens only).
    :ivar expires_at: Absolute expiry (UTC).
    """

    user_id: str
    email: str
    username: str | None
    expires_at: datetime
    token_id: str | None = None


@dataclass(frozen=True, slots=True)
class TokenPair:
    """Access/refresh tokens minted together for the same identity."""

    access_token: str
    refresh_token: str


class TokenCodec(Protocol):
    """Port for issuing and verifying signed bearer tokens."""

    def issue_access_token(self, payload: TokenPayload) -> str: ...

    def issue_refresh_token(self, payload: TokenPayload) -> str: ...

    def issue_pair(self, payload: TokenPayload) -> TokenPair: ...

    def verify_access_token(self, token: str) -> TokenClaims:
        """:raises UnauthorizedError: On bad signature, issuer, audience or expiry."""

    def verify_refresh_token(self, token: str) -> TokenClaims:
        """
        :raises TokenExpiredError: When the token is authentic but expired.
        :raises UnauthorizedError: On any other verification failure.
        """

    def decode_unsafe(self, token: str) -> dict[str, Any] | None:
        """Parse claims without verification; ``None`` when unparseable."""

    def expires_at(self, token: str) -> datetime | None:
        """Embedded ``exp`` as an aware datetime, read via :meth:`decode_unsafe`."""
