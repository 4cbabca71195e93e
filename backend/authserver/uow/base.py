"""
Abstract Unit of Work contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from authserver.services._shared.ports import RefreshTokenStore, UserStore


class UnitOfWork(ABC):
    """
    Coordinates a transactional boundary for a use-case.

    Responsibilities:
    - Provide access to the user and refresh-token stores bound to the same transaction.
    - Commit on success, rollback on error.
    """

    users: UserStore
    refresh_tokens: RefreshTokenStore

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...


#: Zero-argument callable producing a fresh unit of work per use-case.
UnitOfWorkFactory = Callable[[], UnitOfWork]
