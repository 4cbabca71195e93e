"""
In-memory UnitOfWork for service unit tests and local experiments.
"""

from __future__ import annotations

from authserver.services._shared.ports import (
    InMemoryRefreshTokenStore,
    InMemoryUserStore,
    RefreshTokenStore,
    UserStore,
)
from authserver.uow.base import UnitOfWork


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work over in-memory stores.

    Writes are visible immediately; ``rollback()`` only records that it was
    called (there is no undo log). ``committed`` / ``rolled_back`` counters
    let tests assert transaction boundaries.
    """

    def __init__(
        self,
        *,
        users: UserStore | None = None,
        refresh_tokens: RefreshTokenStore | None = None,
    ) -> None:
        self.users = users if users is not None else InMemoryUserStore()
        self.refresh_tokens = (
            refresh_tokens if refresh_tokens is not None else InMemoryRefreshTokenStore()
        )
        self.committed = 0
        self.rolled_back = 0

    def __enter__(self) -> InMemoryUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    def commit(self) -> None:
        self.committed += 1

    def rollback(self) -> None:
        self.rolled_back += 1

    def factory(self) -> InMemoryUnitOfWork:
        """Return ``self`` so one instance can back every call of a service."""
        return self
