"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from authserver.repositories.base import BaseRepository
from authserver.repositories.refresh_token import RefreshTokenRepository
from authserver.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
