from __future__ import annotations

from dataclasses import dataclass

from ...domain.constants import TokenKind
from ...domain.ports import TokenCodec
from ...logging import get_logger
from ..session_guard import SessionGuard
from .token_checks import require_usable_token

logger = get_logger(__name__)


@dataclass(slots=True)
class LogoutUseCase:
    """
    Application use case: end the principal's session and revoke the
    presented access token until its natural expiry.
    """

    codec: TokenCodec
    guard: SessionGuard

    def execute(self, access_token: str) -> None:
        """
        Raises:
            InvalidSignatureError / MalformedTokenError
            TokenExpiredError
            UnsupportedTokenKindError (refresh tokens cannot be logged out)
            StoreUnavailableError
        """
        claims = require_usable_token(self.codec, access_token, TokenKind.ACCESS)
        remaining = self.codec.remaining_ttl(access_token)

        self.guard.release_session(claims.subject, access_token, remaining)
        logger.info(
            "logout_completed", principal=claims.subject, revoked_for=remaining
        )
