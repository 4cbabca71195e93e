"""Unit of Work abstractions and concrete implementations.

This package re-exports the SQLAlchemy-backed unit of work used by the
application, the in-memory variant used by service tests, and the abstract
contracts that the service layer depends on.
"""

from .base import UnitOfWork, UnitOfWorkFactory
from .memory import InMemoryUnitOfWork
from .sqlalchemy_uow import SQLAlchemyUnitOfWork

__all__ = [
    "UnitOfWork",
    "UnitOfWorkFactory",
    "InMemoryUnitOfWork",
    "SQLAlchemyUnitOfWork",
]
