"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthResultSchema,
    LoginSchema,
    LogoutSchema,
    RefreshTokenSchema,
    SignupSchema,
    TokenPairSchema,
)
from .user import ProfileUpdateSchema, UserProfileSchema

__all__ = [
    "AuthResultSchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshTokenSchema",
    "SignupSchema",
    "TokenPairSchema",
    "ProfileUpdateSchema",
    "UserProfileSchema",
]
