"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`authserver.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``authserver.services._shared.base``)
    * :class:`BaseService`

- Auth service (from ``authserver.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`SignupIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`ProfileUpdateIn`, :class:`UserProfileOut`,
      :class:`AuthResultOut`, :class:`RefreshTokenOut`
"""

from __future__ import annotations

from ._shared.base import BaseService
from .auth.dto import (
    UNSET,
    AuthResultOut,
    LoginIn,
    LogoutIn,
    ProfileUpdateIn,
    RefreshIn,
    RefreshTokenOut,
    SignupIn,
    UserProfileOut,
)
from .auth.service import AuthService

__all__ = [
    # Base
    "BaseService",
    # Auth
    "AuthService",
    "UNSET",
    "SignupIn",
    "LoginIn",
    "RefreshIn",
    "LogoutIn",
    "ProfileUpdateIn",
    "UserProfileOut",
    "AuthResultOut",
    "RefreshTokenOut",
]
