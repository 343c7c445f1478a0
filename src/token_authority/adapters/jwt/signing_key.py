from __future__ import annotations

import base64
import binascii

MIN_KEY_BYTES = 32


class SigningKeyProvider:
    """
    Derives the HMAC signing key from the configured secret.

    Built once at process start and handed to the codec; the key is
    read-only afterwards, so concurrent readers need no locking.
    """

    algorithm = "HS256"

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Signing secret must not be empty")
        self._key = self._derive(secret)
        if len(self._key) < MIN_KEY_BYTES:
            raise ValueError(
                f"Signing key must be at least {MIN_KEY_BYTES} bytes for "
                f"{self.algorithm}, got {len(self._key)}"
            )

    @property
    def key(self) -> bytes:
        return self._key

    @staticmethod
    def _derive(secret: str) -> bytes:
        # Base64 secrets are decoded; anything else is used as raw UTF-8.
        try:
            return base64.b64decode(secret, validate=True)
        except (binascii.Error, ValueError):
            return secret.encode("utf-8")
