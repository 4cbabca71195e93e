"""bcrypt-backed :class:`CredentialVerifier` adapter."""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt

from authserver.services._shared.ports import CredentialVerifier

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


@dataclass(frozen=True, slots=True)
class BcryptCredentialVerifier(CredentialVerifier):
    """
    Hash and verify passwords with bcrypt.

    :param rounds: Work factor (log2 of iterations). 12 in production,
        as low as 4 under tests.
    """

    rounds: int = 12

    def __post_init__(self) -> None:
        if not 4 <= self.rounds <= 31:
            raise ValueError(f"bcrypt rounds must be within 4..31, got {self.rounds}")

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(plaintext), salt).decode("ascii")

    def verify(self, plaintext: str, digest: str) -> bool:
        if not plaintext or not digest:
            return False
        try:
            return bcrypt.checkpw(_encode(plaintext), digest.encode("ascii"))
        except (ValueError, UnicodeEncodeError):
            # Malformed or foreign digest
            return False
