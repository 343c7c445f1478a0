import secrets
import time
from typing import Any, Callable, Mapping, Optional

import jwt
from jwt.exceptions import (
    DecodeError,
    InvalidSignatureError as JWTInvalidSignatureError,
    InvalidTokenError as JWTInvalidTokenError,
)

from ...domain.constants import TokenKind
from ...domain.entities import Token, TokenClaims, TokenPair
from ...domain.exceptions import InvalidSignatureError, MalformedTokenError
from ...domain.ports import TokenCodec
from .signing_key import SigningKeyProvider

_REQUIRED_CLAIMS = ["sub", "type", "iat", "exp"]


class JWTTokenCodec(TokenCodec):
    """
    Adapter implementing the TokenCodec port with PyJWT (HS256).

    Infrastructure layer:
    - Knows about JWT structure, claims and HMAC verification.
    - Leaves expiry to `is_expired` so callers can tell "tampered"
      apart from "merely expired".
    """

    def __init__(
        self,
        signing_key: SigningKeyProvider,
        *,
        access_ttl_seconds: int,
        refresh_ttl_seconds: int,
        issuer: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if access_ttl_seconds >= refresh_ttl_seconds:
            raise ValueError("Access token TTL must be shorter than refresh token TTL")
        self._signing_key = signing_key
        self._ttls = {
            TokenKind.ACCESS: int(access_ttl_seconds),
            TokenKind.REFRESH: int(refresh_ttl_seconds),
        }
        self._issuer = issuer
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def ttl_for(self, kind: TokenKind) -> int:
        return self._ttls[kind]

    def issue(
        self,
        principal: str,
        kind: TokenKind,
        *,
        session_id: Optional[str] = None,
    ) -> Token:
        issued_at = int(self._clock())
        expires_at = issued_at + self._ttls[kind]
        session_id = session_id or secrets.token_hex(16)
        payload = {
            "iss": self._issuer,
            "sub": principal,
            "type": kind.value,
            "iat": issued_at,
            "exp": expires_at,
            "sid": session_id,
            "jti": secrets.token_hex(16),
        }
        value = jwt.encode(
            payload,
            self._signing_key.key,
            algorithm=self._signing_key.algorithm,
            headers={"typ": "JWT"},
        )
        return Token(
            value=value,
            subject=principal,
            kind=kind,
            issued_at=issued_at,
            expires_at=expires_at,
            session_id=session_id,
        )

    def issue_pair(self, principal: str) -> TokenPair:
        access = self.issue(principal, TokenKind.ACCESS)
        return TokenPair(
            access=access,
            refresh=self.issue(principal, TokenKind.REFRESH, session_id=access.session_id),
        )

    def verify(self, value: str) -> TokenClaims:
        """
        Verify signature and structure of a token.

        Raises:
            InvalidSignatureError
            MalformedTokenError
        """
        payload = self._decode(value)
        return self._claims_from_payload(payload)

    def is_expired(self, value: str) -> bool:
        claims = self.verify(value)
        return self._clock() >= claims.expires_at

    def remaining_ttl(self, value: str) -> float:
        claims = self.verify(value)
        return max(0.0, claims.expires_at - self._clock())

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _decode(self, value: str) -> Mapping[str, Any]:
        if not isinstance(value, str) or not value:
            raise MalformedTokenError("Invalid token: empty value")
        try:
            return jwt.decode(
                value,
                self._signing_key.key,
                algorithms=[self._signing_key.algorithm],
                issuer=self._issuer,
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except JWTInvalidSignatureError as exc:
            raise InvalidSignatureError("Invalid token signature") from exc
        except (DecodeError, JWTInvalidTokenError) as exc:
            raise MalformedTokenError(f"Invalid token: {exc}") from exc

    @staticmethod
    def _claims_from_payload(payload: Mapping[str, Any]) -> TokenClaims:
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedTokenError("Invalid token: missing subject")

        try:
            kind = TokenKind(payload.get("type"))
        except ValueError as exc:
            raise MalformedTokenError(
                f"Invalid token: unknown kind {payload.get('type')!r}"
            ) from exc

        try:
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            raise MalformedTokenError("Invalid token: non-numeric timestamps") from exc

        session_id = payload.get("sid")
        if session_id is not None and not isinstance(session_id, str):
            raise MalformedTokenError("Invalid token: non-string session id")

        return TokenClaims(
            subject=subject,
            kind=kind,
            issued_at=issued_at,
            expires_at=expires_at,
            session_id=session_id,
        )
