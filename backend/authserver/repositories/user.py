"""User repository implementing the :class:`UserStore` port."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from authserver.models.user import User
from authserver.repositories.base import BaseRepository
from authserver.services._shared.ports.user_store import UPDATABLE_PROFILE_FIELDS


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It never hashes passwords or issues tokens; it only manages user rows.
    Uniqueness is left to the ``uq_users_email`` / ``uq_users_username``
    constraints; violations surface as ``IntegrityError`` on flush.
    """

    model = User
    lookup_fields = frozenset({"id", "email", "username"})
    # Profile fields only; email and password are never updated here
    updatable_fields = UPDATABLE_PROFILE_FIELDS

    # ---------------------------- Writes ----------------------------

    def create(
        self,
        *,
        email: str,
        password_digest: str,
        username: str | None = None,
        name: str | None = None,
        phone: str | None = None,
    ) -> User:
        user = User(
            email=email,
            password_digest=password_digest,
            username=username,
            name=name,
            phone=phone,
        )
        return self.add(user)

    def update_by_id(self, user_id: str, fields: Mapping[str, Any]) -> User | None:
        """Apply whitelisted profile changes.

        :returns: Updated user, or ``None`` when it does not exist.
        :raises ValueError: On non-updatable keys.
        """
        user = self.get(user_id)
        if user is None:
            return None
        return self.assign_updates(user, fields)

    def set_active(self, user_id: str, active: bool) -> User | None:
        user = self.get(user_id)
        if user is None:
            return None
        user.is_active = active
        self.flush()
        return user

    # ---------------------------- Lookups ----------------------------

    def find_by_id(self, user_id: str) -> User | None:
        return self.get(user_id)

    def find_by_email(self, email: str) -> User | None:
        return self.find_one(email=email)

    def find_by_username(self, username: str) -> User | None:
        return self.find_one(username=username)

    def email_exists(self, email: str) -> bool:
        return self.exists(email=email)

    def username_exists(self, username: str) -> bool:
        return self.exists(username=username)
