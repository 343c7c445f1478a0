from __future__ import annotations

from typing import Callable, Optional, Protocol

from .constants import TokenKind
from .entities import ProfileRecord, Token, TokenClaims, TokenPair

# Seconds since the epoch; injectable so expiry can be simulated.
Clock = Callable[[], float]


class TokenCodec(Protocol):
    """
    Port for issuing and verifying signed tokens.

    Implementations live in the adapters layer (e.g. the PyJWT codec).
    """

    def issue(
        self,
        principal: str,
        kind: TokenKind,
        *,
        session_id: Optional[str] = None,
    ) -> Token:
        """A fresh `session_id` is generated unless one is carried over."""
        ...

    def issue_pair(self, principal: str) -> TokenPair:
        ...

    def verify(self, value: str) -> TokenClaims:
        """
        Verify signature and structure only.

        Raises:
          - InvalidSignatureError
          - MalformedTokenError
        """
        ...

    def is_expired(self, value: str) -> bool:
        ...

    def remaining_ttl(self, value: str) -> float:
        ...


class SessionStore(Protocol):
    """
    Port for the ephemeral key/value store with per-key TTL.

    TTLs are seconds. Every method may raise StoreUnavailableError.
    """

    def set(self, key: str, value: str, ttl: float) -> None:
        ...

    def get(self, key: str) -> Optional[str]:
        ...

    def delete(self, key: str) -> None:
        ...

    def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        """
        Atomically set `key` only if no live entry exists.

        Returns True if the value was written, False (no mutation) otherwise.
        """
        ...

    def replace_if_equal(self, key: str, expected: str, value: str, ttl: float) -> bool:
        """
        Atomically overwrite `key` only while it still holds `expected`.

        Returns True if the value was written, False (no mutation) otherwise.
        """
        ...

    def expire(self, key: str, ttl: float) -> bool:
        """Reset the TTL of an existing key; False if the key is absent."""
        ...

    def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime in seconds, or None if the key is absent."""
        ...


class ProfileRepository(Protocol):
    """Read contract of the external profile store."""

    def find_by_principal(self, principal: str) -> Optional[ProfileRecord]:
        ...


class CredentialVerifier(Protocol):
    """External password check; hashing policy is not this package's concern."""

    def verify(self, principal: str, secret: str) -> bool:
        ...
