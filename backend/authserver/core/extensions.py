"""Extension singletons shared by the whole application."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData, event

REDIS_EXTENSION_KEY = "redis_client"

# Constraint names are referenced by the services (uq_users_email, ...)
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    session_options={"autoflush": False},
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
)
migrate = Migrate(render_as_batch=True)
# Storage, default limits and the on/off switch come from RATELIMIT_* config
limiter = Limiter(key_func=get_remote_address)


def _enable_sqlite_foreign_keys(engine) -> None:
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _connect_redis(url: str) -> redis.Redis:
    client = redis.Redis.from_url(url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {url!r}") from exc
    return client


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy, Flask-Migrate and Flask-Limiter; connect Redis when configured.

    Parameters
    ----------
    app: flask.Flask
        Application being built. Importing :mod:`authserver.models` here
        registers both tables on the metadata Alembic autogenerates from.
    """
    db.init_app(app)
    from authserver import models as _models  # noqa: F401

    with app.app_context():
        if db.engine.url.get_backend_name() == "sqlite":
            _enable_sqlite_foreign_keys(db.engine)

    migrate.init_app(app, db)
    limiter.init_app(app)

    redis_url = app.config.get("REDIS_URL")
    if redis_url:
        app.extensions[REDIS_EXTENSION_KEY] = _connect_redis(redis_url)


def get_redis(app: Flask | None = None) -> redis.Redis:
    """Return the Redis client of ``app`` (default: the current application).

    :raises RuntimeError: When ``REDIS_URL`` was not configured.
    """
    client = (app or current_app).extensions.get(REDIS_EXTENSION_KEY)
    if client is None:
        raise RuntimeError("Redis is not configured; set REDIS_URL.")
    return client
