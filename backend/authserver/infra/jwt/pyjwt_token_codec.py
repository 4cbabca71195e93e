"""PyJWT implementation of :class:`TokenCodec` with per-class signing secrets."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from authserver.core.config import parse_duration
from authserver.services._shared.errors import TokenExpiredError, UnauthorizedError
from authserver.services._shared.ports import (
    TokenClaims,
    TokenCodec,
    TokenPair,
    TokenPayload,
)

log = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

INVALID_ACCESS_TOKEN = "Invalid access token"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
REFRESH_TOKEN_EXPIRED = "Refresh token has expired"


@dataclass(frozen=True, slots=True)
class JWTSettings:
    """
    Token emission and verification settings.

    :param access_secret: HMAC key for access tokens only.
    :param refresh_secret: HMAC key for refresh tokens only.
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param issuer: ``iss`` claim embedded and required.
    :param audience: ``aud`` claim embedded and required.
    :param algorithm: JWS algorithm.
    """

    access_secret: str
    refresh_secret: str
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    issuer: str = "auth-server"
    audience: str = "auth-client"
    algorithm: str = "HS256"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> JWTSettings:
        """Build settings from a Flask config mapping; lifetimes may be duration strings."""
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_expires=parse_duration(config["JWT_ACCESS_EXPIRES"]),
            refresh_expires=parse_duration(config["JWT_REFRESH_EXPIRES"]),
            issuer=config["JWT_ISSUER"],
            audience=config["JWT_AUDIENCE"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )


class JWTTokenCodec(TokenCodec):
    """
    Issue and verify access/refresh JWTs.

    Access and refresh tokens are signed with different secrets and carry a
    ``type`` claim, so neither class ever verifies as the other. Refresh tokens
    also embed a random ``jti`` so two tokens minted in the same second for the
    same user are never identical.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Issuing
    # ------------------------------------------------------------------ #

    def _encode(
        self,
        payload: TokenPayload,
        *,
        token_type: str,
        secret: str,
        lifetime: timedelta,
        extra: Mapping[str, Any] | None = None,
    ) -> str:
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "sub": payload.user_id,
            "email": payload.email,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
        }
        if payload.username is not None:
            claims["username"] = payload.username
        if extra:
            claims.update(extra)
        return jwt.encode(claims, secret, algorithm=self.settings.algorithm)

    def issue_access_token(self, payload: TokenPayload) -> str:
        return self._encode(
            payload,
            token_type=ACCESS_TOKEN_TYPE,
            secret=self.settings.access_secret,
            lifetime=self.settings.access_expires,
        )

    def issue_refresh_token(self, payload: TokenPayload) -> str:
        return self._encode(
            payload,
            token_type=REFRESH_TOKEN_TYPE,
            secret=self.settings.refresh_secret,
            lifetime=self.settings.refresh_expires,
            extra={"jti": str(uuid4())},
        )

    def issue_pair(self, payload: TokenPayload) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(payload),
            refresh_token=self.issue_refresh_token(payload),
        )

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def _decode(self, token: str, secret: str, *, verify_exp: bool = True) -> dict[str, Any]:
        return jwt.decode(
            token,
            secret,
            algorithms=[self.settings.algorithm],
            audience=self.settings.audience,
            issuer=self.settings.issuer,
            options={"require": ["exp", "iat", "sub"], "verify_exp": verify_exp},
        )

    @staticmethod
    def _to_claims(raw: Mapping[str, Any]) -> TokenClaims:
        return TokenClaims(
            user_id=str(raw["sub"]),
            email=str(raw.get("email", "")),
            username=raw.get("username"),
            expires_at=datetime.fromtimestamp(int(raw["exp"]), tz=UTC),
            token_id=raw.get("jti"),
        )

    def verify_access_token(self, token: str) -> TokenClaims:
        try:
            raw = self._decode(token, self.settings.access_secret)
        except jwt.InvalidTokenError as exc:
            log.debug("Access token rejected: %s", exc)
            raise UnauthorizedError(INVALID_ACCESS_TOKEN) from exc
        if raw.get("type") != ACCESS_TOKEN_TYPE:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN)
        return self._to_claims(raw)

    def verify_refresh_token(self, token: str) -> TokenClaims:
        try:
            raw = self._decode(token, self.settings.refresh_secret)
        except jwt.ExpiredSignatureError as exc:
            # PyJWT checks exp before iss/aud; re-check those before trusting it
            try:
                self._decode(token, self.settings.refresh_secret, verify_exp=False)
            except jwt.InvalidTokenError as inner:
                raise UnauthorizedError(INVALID_REFRESH_TOKEN) from inner
            raise TokenExpiredError(REFRESH_TOKEN_EXPIRED) from exc
        except jwt.InvalidTokenError as exc:
            log.debug("Refresh token rejected: %s", exc)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc
        if raw.get("type") != REFRESH_TOKEN_TYPE:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)
        return self._to_claims(raw)

    # ------------------------------------------------------------------ #
    # Unverified helpers (bookkeeping only)
    # ------------------------------------------------------------------ #

    def decode_unsafe(self, token: str) -> dict[str, Any] | None:
        if not isinstance(token, str) or not token:
            return None
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None

    def expires_at(self, token: str) -> datetime | None:
        raw = self.decode_unsafe(token)
        if not raw or not isinstance(raw.get("exp"), int | float):
            return None
        return datetime.fromtimestamp(raw["exp"], tz=UTC)
