"""Build the auth service graph from application config."""

from __future__ import annotations

from typing import cast

from flask import Flask, current_app

from authserver.core.extensions import get_redis
from authserver.infra.jwt.pyjwt_token_codec import JWTSettings, JWTTokenCodec
from authserver.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from authserver.infra.security.bcrypt_hasher import BcryptCredentialVerifier
from authserver.services._shared.ports import RefreshTokenStore
from authserver.services.auth.service import AuthService
from authserver.uow.base import UnitOfWorkFactory
from authserver.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

EXTENSION_KEY = "auth_service"


def build_uow_factory(app: Flask) -> UnitOfWorkFactory:
    """Return a factory producing SQL units of work, optionally with Redis refresh tokens."""
    refresh_store: RefreshTokenStore | None = None
    if app.config.get("REFRESH_TOKEN_BACKEND", "sql") == "redis":
        refresh_store = RedisRefreshTokenStore(get_redis(app))

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(refresh_tokens=refresh_store)

    return factory


def init_app(app: Flask) -> AuthService:
    """Create the :class:`AuthService` and register it on ``app.extensions``."""
    service = AuthService(
        uow_factory=build_uow_factory(app),
        token_codec=JWTTokenCodec(JWTSettings.from_config(app.config)),
        hasher=BcryptCredentialVerifier(rounds=int(app.config["BCRYPT_ROUNDS"])),
    )
    app.extensions[EXTENSION_KEY] = service
    return service


def get_auth_service() -> AuthService:
    """Return the service bound to the current application."""
    return cast(AuthService, current_app.extensions[EXTENSION_KEY])
