"""
Unit tests for the Unit of Work implementations.
"""

from __future__ import annotations

import fakeredis
import pytest
from authserver.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from authserver.models import User
from authserver.repositories import RefreshTokenRepository, UserRepository
from authserver.uow import InMemoryUnitOfWork, SQLAlchemyUnitOfWork


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_success(self, db):
        """
        GIVEN a UoW
        WHEN we create a user inside the context and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        with SQLAlchemyUnitOfWork() as uow:
            uow.users.create(email="commit@example.com", password_digest="digest")

        db.session.expire_all()
        assert db.session.query(User).filter_by(email="commit@example.com").count() == 1

    def test_rolls_back_on_exception(self, db):
        """
        GIVEN a UoW
        WHEN an exception is raised inside the context
        THEN the transaction is rolled back and no rows are persisted.
        """
        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.create(email="rollback@example.com", password_digest="digest")
            raise RuntimeError("boom")

        assert db.session.query(User).count() == 0

    def test_default_stores_share_the_session(self, db):
        uow = SQLAlchemyUnitOfWork()
        assert isinstance(uow.users, UserRepository)
        assert isinstance(uow.refresh_tokens, RefreshTokenRepository)
        assert uow.users.session is uow.refresh_tokens.session is db.session

    def test_refresh_store_can_be_replaced(self, db):
        store = RedisRefreshTokenStore(fakeredis.FakeRedis())
        uow = SQLAlchemyUnitOfWork(refresh_tokens=store)
        assert uow.refresh_tokens is store


class TestInMemoryUnitOfWork:
    def test_counts_commits_and_rollbacks(self):
        uow = InMemoryUnitOfWork()
        with uow:
            pass
        with pytest.raises(ValueError), uow:
            raise ValueError("boom")

        assert (uow.committed, uow.rolled_back) == (1, 1)

    def test_factory_returns_the_same_instance(self):
        uow = InMemoryUnitOfWork()
        assert uow.factory() is uow
