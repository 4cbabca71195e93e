from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol


class RefreshTokenRecord(Protocol):
    """Read contract for a persisted refresh token (ORM row or view)."""

    token: str
    user_id: str
    expires_at: datetime
    is_revoked: bool
    created_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for a stored refresh token.

    :ivar token: Signed refresh token string (lookup key).
    :ivar user_id: Owner user id.
    :ivar expires_at: Absolute expiration (UTC), copied from the token's ``exp``.
    :ivar is_revoked: Whether the token was consumed by rotation or revoked.
    :ivar created_at: Creation time (UTC).
    """

    token: str
    user_id: str
    expires_at: datetime
    is_revoked: bool
    created_at: datetime


class RefreshTokenStore(Protocol):
    """
    Stateful store for issued refresh tokens.

    ``revoke`` MUST be a single atomic conditional operation: when two callers
    race on the same token, exactly one observes ``True``.
    """

    def create(self, *, token: str, user_id: str, expires_at: datetime) -> RefreshTokenRecord:
        """Persist a freshly issued refresh token."""

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        """Exact-match lookup by token string."""

    def revoke(self, token: str) -> bool:
        """
        Mark the token as revoked.

        :returns: ``True`` only if this call flipped ``is_revoked`` from false to true.
        """

    def delete(self, token: str) -> bool:
        """Delete a token; absent tokens are not an error. :returns: True if a row was removed."""

    def delete_all_for_user(self, user_id: str) -> int:
        """:returns: Number of tokens deleted for the user."""

    def purge_expired_or_revoked(self, now: datetime | None = None) -> int:
        """Remove expired or revoked tokens. :returns: Number of rows removed."""

    def list_for_user(self, user_id: str) -> Iterable[RefreshTokenRecord]:
        """List every stored token of a user, newest first."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       Uses a threading lock so ``revoke`` keeps its compare-and-set contract
       under concurrent unit tests.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, RefreshTokenView] = {}
        self._lock = threading.Lock()

    def create(self, *, token: str, user_id: str, expires_at: datetime) -> RefreshTokenView:
        with self._lock:
            if token in self._by_token:
                raise ValueError("Refresh token already stored.")
            view = RefreshTokenView(
                token=token,
                user_id=user_id,
                expires_at=expires_at,
                is_revoked=False,
                created_at=datetime.now(UTC),
            )
            self._by_token[token] = view
            return view

    def find_by_token(self, token: str) -> RefreshTokenView | None:
        return self._by_token.get(token)

    def revoke(self, token: str) -> bool:
        with self._lock:
            view = self._by_token.get(token)
            if view is None or view.is_revoked:
                return False
            self._by_token[token] = replace(view, is_revoked=True)
            return True

    def delete(self, token: str) -> bool:
        with self._lock:
            return self._by_token.pop(token, None) is not None

    def delete_all_for_user(self, user_id: str) -> int:
        with self._lock:
            doomed = [t for t, v in self._by_token.items() if v.user_id == user_id]
            for token in doomed:
                del self._by_token[token]
            return len(doomed)

    def purge_expired_or_revoked(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        with self._lock:
            doomed = [t for t, v in self._by_token.items() if v.is_revoked or v.expires_at <= now]
            for token in doomed:
                del self._by_token[token]
            return len(doomed)

    def list_for_user(self, user_id: str) -> list[RefreshTokenView]:
        views = [v for v in self._by_token.values() if v.user_id == user_id]
        return sorted(views, key=lambda v: v.created_at, reverse=True)
