# authserver/services/auth/service.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from authserver.services._shared.base import BaseService
from authserver.services._shared.errors import (
    ConflictError,
    NotFoundError,
    TokenExpiredError,
    UnauthorizedError,
    violates,
)
from authserver.services._shared.ports import (
    CredentialVerifier,
    TokenCodec,
    TokenPair,
    TokenPayload,
    UserRecord,
)
from authserver.services.auth.dto import (
    AuthResultOut,
    LoginIn,
    LogoutIn,
    ProfileUpdateIn,
    RefreshIn,
    RefreshTokenOut,
    SignupIn,
    UserProfileOut,
)

if TYPE_CHECKING:
    from authserver.uow.base import UnitOfWork, UnitOfWorkFactory

log = logging.getLogger(__name__)

EMAIL_TAKEN = "Email address is already registered"
USERNAME_TAKEN = "Username is already taken"
INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DEACTIVATED = "Account is deactivated"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
REFRESH_TOKEN_EXPIRED = "Refresh token has expired"
USER_NOT_FOUND_OR_INACTIVE = "User not found or inactive"


def _conflict_from(exc: IntegrityError) -> ConflictError | None:
    """Translate a unique-index race into the matching conflict, if any."""
    if violates(exc, "uq_users_email"):
        return ConflictError("User", EMAIL_TAKEN)
    if violates(exc, "uq_users_username"):
        return ConflictError("User", USERNAME_TAKEN)
    return None


class AuthService(BaseService):
    """
    Authentication lifecycle service (signup / login / refresh / logout / profile).

    Issues tokens via a pluggable :class:`TokenCodec`, verifies passwords via a
    :class:`CredentialVerifier` and persists users and refresh tokens through
    the stores exposed by the Unit of Work.

    Refresh tokens are single-use: every successful :meth:`refresh_token`
    revokes the presented token and stores a brand-new one in the same unit of
    work. Expected failures are raised as :class:`ServiceError` subclasses;
    infrastructure errors propagate untouched.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        token_codec: TokenCodec,
        hasher: CredentialVerifier,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param uow_factory: Callable returning a fresh Unit of Work.
        :param token_codec: Adapter for issuing/verifying JWTs.
        :param hasher: One-way password hashing capability.
        """
        super().__init__(uow_factory=uow_factory)
        self.tokens = token_codec
        self.hasher = hasher

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _payload_for(user: UserRecord) -> TokenPayload:
        return TokenPayload(user_id=user.id, email=user.email, username=user.username)

    def _issue_session(self, uow: UnitOfWork, user: UserRecord) -> TokenPair:
        """Mint a token pair and persist the refresh token's durable record."""
        tokens = self.tokens.issue_pair(self._payload_for(user))
        # Just minted, so the embedded exp is always readable
        expires_at = self.tokens.expires_at(tokens.refresh_token)
        if expires_at is None:
            raise RuntimeError("Issued refresh token carries no expiry claim.")
        uow.refresh_tokens.create(
            token=tokens.refresh_token, user_id=user.id, expires_at=expires_at
        )
        return tokens

    # ------------------------------------------------------------------ #
    # Signup / Login
    # ------------------------------------------------------------------ #

    def signup(self, dto: SignupIn) -> AuthResultOut:
        """
        Register a user and open their first session.

        :param dto: Signup input.
        :returns: Sanitized profile plus token pair.
        :raises ConflictError: If the email or username is already taken.
        """
        try:
            with self.uow() as uow:
                if uow.users.email_exists(dto.email):
                    raise ConflictError("User", EMAIL_TAKEN)
                if dto.username is not None and uow.users.username_exists(dto.username):
                    raise ConflictError("User", USERNAME_TAKEN)

                user = uow.users.create(
                    email=dto.email,
                    password_digest=self.hasher.hash(dto.password),
                    username=dto.username,
                    name=dto.name,
                    phone=dto.phone,
                )
                tokens = self._issue_session(uow, user)
                profile = UserProfileOut.from_record(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent signup
            conflict = _conflict_from(exc)
            if conflict is None:
                raise
            raise conflict from exc

        log.info("auth.signup", extra={"event": "auth.signup", "user_id": profile.id})
        return AuthResultOut(user=profile, tokens=tokens)

    def login(self, dto: LoginIn) -> AuthResultOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email and wrong password share one message so callers cannot
        probe which emails are registered.

        :raises UnauthorizedError: On bad credentials or a deactivated account.
        """
        with self.uow() as uow:
            user = uow.users.find_by_email(dto.email)
            if user is None:
                raise UnauthorizedError(INVALID_CREDENTIALS)
            if not user.is_active:
                raise UnauthorizedError(ACCOUNT_DEACTIVATED)
            if not self.hasher.verify(dto.password, user.password_digest):
                raise UnauthorizedError(INVALID_CREDENTIALS)

            tokens = self._issue_session(uow, user)
            profile = UserProfileOut.from_record(user)

        log.info("auth.login", extra={"event": "auth.login", "user_id": profile.id})
        return AuthResultOut(user=profile, tokens=tokens)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh_token(self, dto: RefreshIn) -> TokenPair:
        """
        Exchange a refresh token for a new pair (rotation).

        Security
        --------
        - The token is verified cryptographically before the store is consulted.
        - Unknown, revoked and already-rotated tokens fail identically.
        - The owner is re-read so deactivation takes effect immediately.
        - The old record is revoked with an atomic conditional update; a
          concurrent caller that loses that race is rejected.
        - A token past its JWT ``exp`` is not answered as invalid straight away:
          its record is deleted and the caller gets "Refresh token has expired".

        :raises UnauthorizedError: For every invalid, expired or replayed token.
        """
        presented = dto.refresh_token

        try:
            claims = self.tokens.verify_refresh_token(presented)
        except TokenExpiredError:
            # Authentic but past exp: drop its record before reporting expiry
            with self.uow() as uow:
                uow.refresh_tokens.delete(presented)
            log.warning("auth.refresh rejected", extra={"event": "auth.refresh", "status": "expired"})
            raise
        except UnauthorizedError:
            log.warning("auth.refresh rejected", extra={"event": "auth.refresh", "status": "invalid"})
            raise

        with self.uow() as uow:
            record = uow.refresh_tokens.find_by_token(presented)
            if record is None or record.is_revoked or record.user_id != claims.user_id:
                log.warning(
                    "auth.refresh rejected",
                    extra={"event": "auth.refresh", "status": "unknown_or_revoked"},
                )
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)

            if self.as_utc(record.expires_at) <= self.now_utc():
                uow.refresh_tokens.delete(presented)
                uow.commit()
                raise UnauthorizedError(REFRESH_TOKEN_EXPIRED)

            user = uow.users.find_by_id(claims.user_id)
            if user is None or not user.is_active:
                raise UnauthorizedError(USER_NOT_FOUND_OR_INACTIVE)

            if not uow.refresh_tokens.revoke(presented):
                # Another request rotated this token first
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)
            tokens = self._issue_session(uow, user)

        log.info("auth.refresh", extra={"event": "auth.refresh", "user_id": claims.user_id})
        return tokens

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Discard a refresh token. Idempotent: absent or garbage tokens are a no-op.
        """
        if not dto.refresh_token:
            log.info("auth.logout", extra={"event": "auth.logout", "status": "noop"})
            return

        with self.uow() as uow:
            removed = uow.refresh_tokens.delete(dto.refresh_token)

        log.info(
            "auth.logout",
            extra={"event": "auth.logout", "status": "revoked" if removed else "noop"},
        )

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_profile(self, user_id: str) -> UserProfileOut:
        """:raises NotFoundError: If the user does not exist."""
        with self.uow() as uow:
            user = uow.users.find_by_id(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return UserProfileOut.from_record(user)

    def update_profile(self, user_id: str, dto: ProfileUpdateIn) -> UserProfileOut:
        """
        Apply a partial update of ``username``, ``name`` and ``phone``.

        :raises NotFoundError: If the user does not exist.
        :raises ConflictError: If the new username belongs to someone else.
        """
        changes = dto.changes()
        try:
            with self.uow() as uow:
                user = uow.users.find_by_id(user_id)
                if user is None:
                    raise NotFoundError("User", user_id)

                username = changes.get("username")
                if (
                    username is not None
                    and username != user.username
                    and uow.users.username_exists(username)
                ):
                    raise ConflictError("User", USERNAME_TAKEN)

                if changes:
                    updated = uow.users.update_by_id(user_id, changes)
                    if updated is None:
                        raise NotFoundError("User", user_id)
                    user = updated
                profile = UserProfileOut.from_record(user)
        except IntegrityError as exc:
            conflict = _conflict_from(exc)
            if conflict is None:
                raise
            raise conflict from exc
        return profile

    # ------------------------------------------------------------------ #
    # Administrative operations (CLI)
    # ------------------------------------------------------------------ #

    def deactivate_user(self, email: str) -> int:
        """
        Deactivate an account and drop all of its refresh tokens.

        :returns: Number of refresh tokens removed.
        :raises NotFoundError: If no user has this email.
        """
        with self.uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                raise NotFoundError("User", email)
            uow.users.set_active(user.id, False)
            removed = uow.refresh_tokens.delete_all_for_user(user.id)
            user_id = user.id
        log.info("auth.deactivate", extra={"event": "auth.deactivate", "user_id": user_id})
        return removed

    def list_refresh_tokens(self, email: str) -> list[RefreshTokenOut]:
        """:raises NotFoundError: If no user has this email."""
        with self.uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                raise NotFoundError("User", email)
            return [RefreshTokenOut.from_record(r) for r in uow.refresh_tokens.list_for_user(user.id)]

    def purge_refresh_tokens(self) -> int:
        """Delete expired or revoked refresh tokens. :returns: Rows removed."""
        with self.uow() as uow:
            removed = uow.refresh_tokens.purge_expired_or_revoked(self.now_utc())
        log.info("auth.purge", extra={"event": "auth.purge", "status": removed})
        return removed
