# authserver/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from authserver.core import errors as api_errors
from authserver.services._shared.errors import (
    ConflictError,
    ErrorKind,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)

if TYPE_CHECKING:
    from authserver.uow.base import UnitOfWork, UnitOfWorkFactory


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide a helper to open units of work from an injected factory.
    * Centralize error translation to the HTTP layer.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        """
        Initialize the base service.

        :param uow_factory: Zero-argument callable returning a new Unit of Work.
        """
        self._uow_factory = uow_factory

    # -------------------------- UoW helpers ---------------------------------

    def uow(self) -> UnitOfWork:
        """Create a read-write Unit of Work."""
        return self._uow_factory()

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    @staticmethod
    def as_utc(value: datetime) -> datetime:
        """Label naive datetimes read back from the store as UTC."""
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised.
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, UnauthorizedError):
            return api_errors.Unauthorized(exc.message)

        if isinstance(exc, ServiceError):
            if exc.kind is ErrorKind.VALIDATION:
                return api_errors.UnprocessableEntity(str(exc))
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
