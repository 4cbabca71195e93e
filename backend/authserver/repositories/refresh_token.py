"""SQL refresh token repository implementing the :class:`RefreshTokenStore` port."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select, update

from authserver.models.base import utcnow
from authserver.models.refresh_token import RefreshToken
from authserver.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    ``revoke`` and ``delete`` are single conditional statements so that two
    concurrent callers cannot both observe success for the same token.
    """

    model = RefreshToken
    lookup_fields = frozenset({"token", "user_id"})

    def create(self, *, token: str, user_id: str, expires_at: datetime) -> RefreshToken:
        return self.add(RefreshToken(token=token, user_id=user_id, expires_at=expires_at))

    def find_by_token(self, token: str) -> RefreshToken | None:
        return self.find_one(token=token)

    def revoke(self, token: str) -> bool:
        """Flip ``is_revoked``; ``True`` only for the caller that changed the row."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.is_revoked.is_(False))
            .values(is_revoked=True)
            .execution_options(synchronize_session="evaluate")
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1

    def delete(self, token: str) -> bool:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session="evaluate")
        )
        result = self.session.execute(stmt)
        return result.rowcount > 0

    def delete_all_for_user(self, user_id: str) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session="evaluate")
        )
        return int(self.session.execute(stmt).rowcount)

    def purge_expired_or_revoked(self, now: datetime | None = None) -> int:
        stmt = (
            delete(RefreshToken)
            .where(
                or_(
                    RefreshToken.expires_at <= (now or utcnow()),
                    RefreshToken.is_revoked.is_(True),
                )
            )
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount)

    def list_for_user(self, user_id: str) -> list[RefreshToken]:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())
