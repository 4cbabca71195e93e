"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from authserver.core.extensions import db
from authserver.repositories import RefreshTokenRepository, UserRepository
from authserver.services._shared.ports import RefreshTokenStore
from authserver.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared across all repositories for a consistent
    transaction. When a non-SQL refresh token store is injected (Redis), its
    writes are applied immediately and are not covered by ``rollback()``.
    """

    def __init__(
        self,
        *,
        session: Session | None = None,
        refresh_tokens: RefreshTokenStore | None = None,
    ) -> None:
        """Initialise the Unit of Work with a shared SQLAlchemy session.

        :param session: Session to use; defaults to the Flask-scoped session.
        :param refresh_tokens: Alternative refresh token store.
        """
        self.session: Session = session if session is not None else db.session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = refresh_tokens or RefreshTokenRepository(session=self.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
