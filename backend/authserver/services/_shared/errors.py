"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between
repositories, token adapters, and application services.

Each error carries an :class:`ErrorKind`; the translation to HTTP responses
(RFC 7807) is handled by ``authserver/core/errors.py`` via
``BaseService.translate_exceptions()``. Infrastructure failures (database or
Redis unreachable) are *not* wrapped and keep their original type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from sqlalchemy.exc import IntegrityError


class ErrorKind(StrEnum):
    """Abstract failure categories surfaced by the service layer."""

    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL includes the constraint name in the message; SQLite only
    reports the column (``UNIQUE constraint failed: users.email``), so the
    column suffix of the convention-based name is matched as a fallback.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    # uq_<table>_<column> -> "<table>.<column>"
    parts = name.split("_", 2)
    if len(parts) == 3 and parts[0] == "uq":
        return f"{parts[1]}.{parts[2]}" in message
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, adapters or domain logic.
    - The API layer translates them to ``APIError`` by :attr:`kind`.
    """

    kind: ClassVar[ErrorKind | None] = None


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    kind: ClassVar[ErrorKind] = ErrorKind.NOT_FOUND

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a uniqueness rule is violated (email or username taken).

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation, safe for clients.
    :type detail: str
    """

    kind: ClassVar[ErrorKind] = ErrorKind.CONFLICT

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail


class UnauthorizedError(ServiceError):
    """Raised for bad credentials and invalid, expired, revoked or unknown tokens."""

    kind: ClassVar[ErrorKind] = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)
        self.message = message


class TokenExpiredError(UnauthorizedError):
    """
    Raised by the token codec when a token is authentic but past its ``exp``.

    Signature, issuer and audience have already been validated when this is
    raised, so callers may use it for bookkeeping on the presented token.
    """
