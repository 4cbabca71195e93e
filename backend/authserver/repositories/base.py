"""Shared plumbing for the SQL stores.

Repositories only stage and query rows; the Unit of Work owns commit and
rollback.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import ColumnElement, exists, select
from sqlalchemy.orm import Session

from authserver.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Persistence-only repository for one mapped class.

    Subclasses set ``model`` and may narrow ``lookup_fields`` (columns usable
    as equality keys) and ``updatable_fields`` (columns ``assign_updates``
    may write). Both default to nothing, so an unlisted column is rejected
    rather than silently used.
    """

    model: type[E]
    lookup_fields: ClassVar[frozenset[str]] = frozenset()
    updatable_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session shared across the Unit of Work scope; the
            Flask-scoped session is used when omitted.
        """
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Internals --------------------------------

    def _criteria(self, filters: Mapping[str, Any]) -> list[ColumnElement[bool]]:
        unknown = set(filters) - self.lookup_fields
        if unknown:
            raise ValueError(f"Not a lookup field of {self.model.__name__}: {sorted(unknown)}")
        return [getattr(self.model, key) == value for key, value in filters.items()]

    # --------------------------------- Rows ----------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so unique violations surface immediately.

        :raises sqlalchemy.exc.IntegrityError: On unique/foreign-key violations.
        """
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        return self.session.get(self.model, entity_id)

    def find_one(self, **filters: Any) -> E | None:
        stmt = select(self.model).where(*self._criteria(filters)).limit(1)
        return self.session.execute(stmt).scalars().first()

    def exists(self, **filters: Any) -> bool:
        stmt = select(exists().where(*self._criteria(filters)))
        return bool(self.session.execute(stmt).scalar())

    def flush(self) -> None:
        self.session.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any]) -> E:
        """Write whitelisted columns onto ``instance`` and flush.

        ``setattr`` is used so ``@validates`` hooks on the model still run.

        :raises ValueError: If ``fields`` names a column outside ``updatable_fields``.
        """
        rejected = set(fields) - self.updatable_fields
        if rejected:
            raise ValueError(f"Unknown or non-updatable fields: {sorted(rejected)}")
        for key, value in fields.items():
            setattr(instance, key, value)
        self.flush()
        return instance
