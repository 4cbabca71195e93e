from __future__ import annotations

from typing import Protocol


class CredentialVerifier(Protocol):
    """Port for a one-way password hashing scheme."""

    def hash(self, plaintext: str) -> str:
        """Return an opaque digest for ``plaintext``."""

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return whether ``plaintext`` matches ``digest``. Never raises."""
