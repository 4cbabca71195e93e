# comments in English; reST docstrings
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]
from redis.exceptions import WatchError  # type: ignore[import-untyped]

from authserver.services._shared.ports import RefreshTokenStore, RefreshTokenView

#: Extra seconds a record outlives its token so expiry is observed by the app
#: (and reported as "expired") before Redis evicts it.
EXPIRY_GRACE_SECONDS = 3600


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    Layout
    ------
    ``rt:{sha256(token)}``
        Hash with ``token``, ``user_id``, ``expires_at``, ``is_revoked``,
        ``created_at`` (epoch seconds). TTL = token expiry + grace.
    ``rt:u:{user_id}``
        Set of token digests owned by the user.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _digest(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    @classmethod
    def _k(cls, token: str) -> str:
        return f"rt:{cls._digest(token)}"

    @staticmethod
    def _kd(digest: str) -> str:
        return f"rt:{digest}"

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    @staticmethod
    def _view(h: dict[bytes, bytes]) -> RefreshTokenView:
        def _s(name: str) -> str:
            return h[name.encode()].decode()

        return RefreshTokenView(
            token=_s("token"),
            user_id=_s("user_id"),
            expires_at=datetime.fromtimestamp(int(_s("expires_at")), tz=UTC),
            is_revoked=_s("is_revoked") == "1",
            created_at=datetime.fromtimestamp(int(_s("created_at")), tz=UTC),
        )

    # -------------------- API ------------------------

    def create(self, *, token: str, user_id: str, expires_at: datetime) -> RefreshTokenView:
        key = self._k(token)
        now = datetime.now(UTC)
        exp_ts = self._to_ts(expires_at)
        created_ts = self._to_ts(now)

        # HSETNX on the token field doubles as the uniqueness check
        if not self.r.hsetnx(key, "token", token):
            raise ValueError("Refresh token already stored.")

        index_key = self._ku(user_id)
        index_expiry = exp_ts + EXPIRY_GRACE_SECONDS
        # The index lives as long as its longest-lived token
        index_ttl = self.r.ttl(index_key)
        extend_index = index_ttl < 0 or created_ts + index_ttl < index_expiry

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={
                "user_id": user_id,
                "expires_at": str(exp_ts),
                "is_revoked": "0",
                "created_at": str(created_ts),
            },
        )
        pipe.expireat(key, exp_ts + EXPIRY_GRACE_SECONDS)
        pipe.sadd(index_key, self._digest(token))
        if extend_index:
            pipe.expireat(index_key, index_expiry)
        pipe.execute()

        return RefreshTokenView(
            token=token,
            user_id=user_id,
            expires_at=datetime.fromtimestamp(exp_ts, tz=UTC),
            is_revoked=False,
            created_at=datetime.fromtimestamp(created_ts, tz=UTC),
        )

    def find_by_token(self, token: str) -> RefreshTokenView | None:
        h = self.r.hgetall(self._k(token))
        if not h or b"user_id" not in h:
            return None
        # Digest collisions are not a concern, but the stored token must match exactly
        if h[b"token"].decode() != token:
            return None
        return self._view(h)

    def revoke(self, token: str) -> bool:
        """
        Flip ``is_revoked`` using WATCH/MULTI/EXEC.

        :returns: ``True`` only for the caller that performed the transition.
        """
        key = self._k(token)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    current = p.hget(key, "is_revoked")
                    if current is None or current == b"1":
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "is_revoked", "1")
                    p.execute()
                    return True
            except WatchError:
                # Concurrent modification; re-read state and try again
                continue

    def delete(self, token: str) -> bool:
        key = self._k(token)
        uid = self.r.hget(key, "user_id")
        pipe = self.r.pipeline(transaction=True)
        pipe.delete(key)
        if uid is not None:
            pipe.srem(self._ku(uid.decode()), self._digest(token))
        removed, *_ = pipe.execute()
        return bool(removed)

    def delete_all_for_user(self, user_id: str) -> int:
        index = self._ku(user_id)
        digests = [d.decode() for d in self.r.smembers(index)]
        if not digests:
            return 0
        pipe = self.r.pipeline(transaction=True)
        for digest in digests:
            pipe.delete(self._kd(digest))
        pipe.delete(index)
        results = pipe.execute()
        return sum(int(n) for n in results[:-1])

    def purge_expired_or_revoked(self, now: datetime | None = None) -> int:
        now_ts = self._to_ts(now or datetime.now(UTC))
        removed = 0
        for index in self.r.scan_iter(match="rt:u:*"):
            for raw_digest in self.r.smembers(index):
                digest = raw_digest.decode()
                key = self._kd(digest)
                h = self.r.hgetall(key)
                if not h:
                    # evicted by TTL; drop the dangling index entry
                    self.r.srem(index, raw_digest)
                    continue
                if h.get(b"is_revoked") == b"1" or int(h.get(b"expires_at", b"0")) <= now_ts:
                    pipe = self.r.pipeline(transaction=True)
                    pipe.delete(key)
                    pipe.srem(index, raw_digest)
                    deleted, _ = pipe.execute()
                    removed += int(deleted)
        return removed

    def list_for_user(self, user_id: str) -> list[RefreshTokenView]:
        views: list[RefreshTokenView] = []
        for raw_digest in self.r.smembers(self._ku(user_id)):
            h = self.r.hgetall(self._kd(raw_digest.decode()))
            if h and b"user_id" in h:
                views.append(self._view(h))
        return sorted(views, key=lambda v: v.created_at, reverse=True)
