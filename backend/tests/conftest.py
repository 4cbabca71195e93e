"""Pytest fixtures configuring an isolated database and service layer.

Tables are created before and dropped after every test against an in-memory
SQLite database (a single shared connection), so committed rows never leak
between cases.
"""

from __future__ import annotations

import os

import pytest
from authserver.core.config import TestingConfig
from authserver.core.extensions import db as _db  # Flask-SQLAlchemy instance
from authserver.factory import create_app  # application factory under test
from authserver.infra.jwt.pyjwt_token_codec import JWTSettings, JWTTokenCodec
from authserver.infra.security.bcrypt_hasher import BcryptCredentialVerifier
from authserver.services.auth.service import AuthService
from authserver.uow import InMemoryUnitOfWork


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("TEST_DATABASE_URL", None)
    app = create_app(TestingConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture()
def db(app):
    """Create every table for the duration of one test.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(db):
    """Expose the Flask-scoped session used by the application code."""
    return db.session


@pytest.fixture()
def client(app, db):
    """Flask test client with the schema in place."""
    return app.test_client()


@pytest.fixture()
def runner(app, db):
    """Click runner bound to the application CLI."""
    return app.test_cli_runner()


# -- Service layer over in-memory doubles -------------------------------------
@pytest.fixture(scope="session")
def hasher() -> BcryptCredentialVerifier:
    """Cheapest bcrypt work factor; the algorithm is real."""
    return BcryptCredentialVerifier(rounds=4)


@pytest.fixture()
def jwt_settings() -> JWTSettings:
    return JWTSettings(
        access_secret=TestingConfig.JWT_ACCESS_SECRET,
        refresh_secret=TestingConfig.JWT_REFRESH_SECRET,
    )


@pytest.fixture()
def codec(jwt_settings) -> JWTTokenCodec:
    return JWTTokenCodec(jwt_settings)


@pytest.fixture()
def memory_uow() -> InMemoryUnitOfWork:
    """One in-memory Unit of Work reused by every service call of a test."""
    return InMemoryUnitOfWork()


@pytest.fixture()
def auth_service(memory_uow, codec, hasher) -> AuthService:
    """Build an AuthService wired to in-memory stores and real crypto."""
    return AuthService(uow_factory=memory_uow.factory, token_codec=codec, hasher=hasher)


# -- Hook up Factory Boy to the Flask-SQLAlchemy session ----------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when a test uses the database."""
    from tests.factories import SQLAlchemySession

    if "db" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
