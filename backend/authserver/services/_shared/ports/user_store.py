from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

#: Profile fields that may be changed through ``update_by_id``.
UPDATABLE_PROFILE_FIELDS = frozenset({"username", "name", "phone"})


def _unique_violation(constraint: str) -> IntegrityError:
    """Build the error a database raises when ``constraint`` rejects a write."""
    orig = Exception(f"duplicate key value violates unique constraint \"{constraint}\"")
    return IntegrityError("users", None, orig)


class UserRecord(Protocol):
    """Read contract of a stored user, satisfied by the ORM model and fakes."""

    id: str
    email: str
    username: str | None
    name: str | None
    phone: str | None
    password_digest: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserStore(Protocol):
    """
    Persistence port for user identity records.

    Lookups return ``None`` for missing rows; they never raise. Uniqueness of
    ``email`` and (non-null) ``username`` is enforced by the store at write time.
    """

    def create(
        self,
        *,
        email: str,
        password_digest: str,
        username: str | None = None,
        name: str | None = None,
        phone: str | None = None,
    ) -> UserRecord: ...

    def find_by_id(self, user_id: str) -> UserRecord | None: ...

    def find_by_email(self, email: str) -> UserRecord | None: ...

    def find_by_username(self, username: str) -> UserRecord | None: ...

    def update_by_id(self, user_id: str, fields: Mapping[str, Any]) -> UserRecord | None: ...

    def email_exists(self, email: str) -> bool: ...

    def username_exists(self, username: str) -> bool: ...

    def set_active(self, user_id: str, active: bool) -> UserRecord | None: ...


@dataclass(slots=True)
class InMemoryUser:
    id: str
    email: str
    password_digest: str
    username: str | None = None
    name: str | None = None
    phone: str | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryUserStore(UserStore):
    """
    Dictionary-backed user store for unit tests.

    .. note::
       Duplicate email/username raise the ``IntegrityError`` a relational
       store reports for the ``uq_users_*`` unique constraints.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, InMemoryUser] = {}
        self._lock = threading.Lock()

    def create(
        self,
        *,
        email: str,
        password_digest: str,
        username: str | None = None,
        name: str | None = None,
        phone: str | None = None,
    ) -> InMemoryUser:
        with self._lock:
            if any(u.email == email for u in self._by_id.values()):
                raise _unique_violation("uq_users_email")
            if username is not None and any(u.username == username for u in self._by_id.values()):
                raise _unique_violation("uq_users_username")
            user = InMemoryUser(
                id=str(uuid4()),
                email=email,
                password_digest=password_digest,
                username=username,
                name=name,
                phone=phone,
            )
            self._by_id[user.id] = user
            return replace(user)

    def find_by_id(self, user_id: str) -> InMemoryUser | None:
        user = self._by_id.get(user_id)
        return replace(user) if user else None

    def find_by_email(self, email: str) -> InMemoryUser | None:
        for user in self._by_id.values():
            if user.email == email:
                return replace(user)
        return None

    def find_by_username(self, username: str) -> InMemoryUser | None:
        for user in self._by_id.values():
            if user.username == username:
                return replace(user)
        return None

    def update_by_id(self, user_id: str, fields: Mapping[str, Any]) -> InMemoryUser | None:
        unknown = set(fields) - UPDATABLE_PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {sorted(unknown)}")
        with self._lock:
            user = self._by_id.get(user_id)
            if user is None:
                return None
            username = fields.get("username")
            if username is not None and any(
                u.username == username and u.id != user_id for u in self._by_id.values()
            ):
                raise _unique_violation("uq_users_username")
            for key, value in fields.items():
                setattr(user, key, value)
            user.updated_at = datetime.now(UTC)
            return replace(user)

    def email_exists(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def username_exists(self, username: str) -> bool:
        return self.find_by_username(username) is not None

    def set_active(self, user_id: str, active: bool) -> InMemoryUser | None:
        with self._lock:
            user = self._by_id.get(user_id)
            if user is None:
                return None
            user.is_active = active
            user.updated_at = datetime.now(UTC)
            return replace(user)
