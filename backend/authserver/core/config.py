"""Application settings with environment-based simple classes."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

DEV_ACCESS_SECRET: Final[str] = "CHANGE_ME_ACCESS"
DEV_REFRESH_SECRET: Final[str] = "CHANGE_ME_REFRESH"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS: Final[Mapping[str, str]] = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}

log = logging.getLogger(__name__)

# Load .env during development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_duration(raw: str | int | timedelta) -> timedelta:
    """Convert a compact duration such as ``"15m"`` or ``"7d"`` to a timedelta.

    Bare integers are interpreted as seconds.

    :param raw: Duration literal, number of seconds, or a ready timedelta.
    :returns: Parsed duration.
    :raises ValueError: If the literal cannot be parsed.
    """
    if isinstance(raw, timedelta):
        return raw
    if isinstance(raw, int):
        return timedelta(seconds=raw)
    match = _DURATION_RE.match(str(raw))
    if match is None:
        raise ValueError(f"Invalid duration: {raw!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    JWT_ACCESS_SECRET: str
        HMAC key used to sign access tokens only.
    JWT_REFRESH_SECRET: str
        HMAC key used to sign refresh tokens only. Must differ from the
        access secret.
    JWT_ACCESS_EXPIRES / JWT_REFRESH_EXPIRES: timedelta
        Token lifetimes, parsed from ``JWT_ACCESS_EXPIRES_IN`` and
        ``JWT_REFRESH_EXPIRES_IN`` (``"15m"`` and ``"7d"`` by default).
    JWT_ISSUER / JWT_AUDIENCE: str
        Registered ``iss`` and ``aud`` claims embedded and enforced.
    BCRYPT_ROUNDS: int
        Work factor for password hashing.
    REFRESH_TOKEN_BACKEND: str
        ``"sql"`` (default) or ``"redis"``.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

    # Tokens
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_ACCESS_EXPIRES = parse_duration(os.getenv("JWT_ACCESS_EXPIRES_IN", "15m"))
    JWT_REFRESH_EXPIRES = parse_duration(os.getenv("JWT_REFRESH_EXPIRES_IN", "7d"))
    JWT_ISSUER = os.getenv("JWT_ISSUER", "auth-server")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "auth-client")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

    # Password hashing
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Refresh token persistence
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "sql").strip().lower()
    REDIS_URL = os.getenv("REDIS_URL")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # Rate limiting
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per 15 minutes")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per 15 minutes")
    AUTH_SIGNUP_RATE_LIMIT = os.getenv("AUTH_SIGNUP_RATE_LIMIT", "3 per hour")

    # Logging, CORS & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGIN", "http://localhost:3000")
    CORS_MAX_AGE = 600
    USE_PROXYFIX = env_bool("USE_PROXYFIX", False)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Lowers the bcrypt work factor to keep the suite fast.
    - Disables rate limiting.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    BCRYPT_ROUNDS = 4
    REFRESH_TOKEN_BACKEND = "sql"
    RATELIMIT_ENABLED = False
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, Any], *, production: bool) -> None:
    """Check token secrets and backend selection before the app starts serving.

    :param config: Loaded Flask config mapping.
    :param production: Whether strict production rules apply.
    :raises RuntimeError: On unusable settings.
    """
    access = config.get("JWT_ACCESS_SECRET")
    refresh = config.get("JWT_REFRESH_SECRET")
    if not access or not refresh:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set.")

    if access == refresh:
        if production:
            raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")
        log.warning("config.same_token_secrets access and refresh secrets are identical")

    if production and {access, refresh} & {DEV_ACCESS_SECRET, DEV_REFRESH_SECRET}:
        raise RuntimeError("Development token secrets are not allowed in production.")

    backend = config.get("REFRESH_TOKEN_BACKEND", "sql")
    if backend not in {"sql", "redis"}:
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND: {backend!r}")
    if backend == "redis" and not config.get("REDIS_URL"):
        raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL.")

    # timedeltas may arrive as strings from instance config files
    for key in ("JWT_ACCESS_EXPIRES", "JWT_REFRESH_EXPIRES"):
        if parse_duration(config[key]) <= timedelta(0):
            raise RuntimeError(f"{key} must be a positive duration.")
