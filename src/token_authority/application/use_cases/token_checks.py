from __future__ import annotations

from ...domain.constants import TokenKind
from ...domain.entities import TokenClaims
from ...domain.exceptions import TokenExpiredError, UnsupportedTokenKindError
from ...domain.ports import TokenCodec


def require_usable_token(codec: TokenCodec, value: str, kind: TokenKind) -> TokenClaims:
    """
    Verify -> expiry -> kind, in that order, so each failure keeps its own
    error type.

    Raises:
        InvalidSignatureError / MalformedTokenError
        TokenExpiredError
        UnsupportedTokenKindError
    """
    claims = codec.verify(value)
    if codec.is_expired(value):
        raise TokenExpiredError("Token has expired")
    if claims.kind is not kind:
        raise UnsupportedTokenKindError(expected=kind, actual=claims.kind)
    return claims
