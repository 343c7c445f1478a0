from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...domain.constants import TokenKind
from ...domain.entities import Token
from ...domain.exceptions import InvalidTokenError
from ...domain.ports import ProfileRepository, TokenCodec
from ...logging import get_logger
from ..profile_cache import ProfileCache
from ..session_guard import SessionGuard
from .token_checks import require_usable_token

logger = get_logger(__name__)


@dataclass(slots=True)
class RefreshAccessTokenUseCase:
    """
    Application use case: exchange a refresh token for a new access token.

    The session slot is not re-acquired. With `rebind_session` enabled
    the session record is pointed at the new access token, provided it
    still holds a token from the same login; otherwise it keeps expiring
    on its original schedule.
    """

    codec: TokenCodec
    guard: SessionGuard
    profile_cache: ProfileCache
    profile_ttl_seconds: float
    rebind_session: bool = False
    profile_repository: Optional[ProfileRepository] = None

    def execute(self, refresh_token: str) -> Token:
        """
        Raises:
            InvalidSignatureError / MalformedTokenError
            TokenExpiredError
            UnsupportedTokenKindError (access tokens cannot be exchanged)
            StoreUnavailableError
        """
        claims = require_usable_token(self.codec, refresh_token, TokenKind.REFRESH)
        principal = claims.subject

        self.profile_cache.touch(
            principal, self.profile_ttl_seconds, self.profile_repository
        )

        access = self.codec.issue(
            principal, TokenKind.ACCESS, session_id=claims.session_id
        )
        rebound = self.rebind_session and self._rebind(principal, claims.session_id, access)

        logger.info(
            "access_token_refreshed",
            principal=principal,
            expires_at=access.expires_at,
            session_rebound=rebound,
        )
        return access

    def _rebind(self, principal: str, session_id: Optional[str], access: Token) -> bool:
        current = self.guard.active_token(principal)
        if current is None or session_id is None:
            return False

        try:
            current_session_id = self.codec.verify(current).session_id
        except InvalidTokenError:
            return False
        if current_session_id != session_id:
            logger.info("session_rebind_skipped", principal=principal)
            return False

        return self.guard.rebind_session(
            principal, current, access.value, self.codec.remaining_ttl(access.value)
        )
