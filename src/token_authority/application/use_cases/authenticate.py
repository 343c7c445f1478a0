from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...domain.constants import TokenKind
from ...domain.entities import AccessContext
from ...domain.exceptions import TokenRevokedError
from ...domain.ports import ProfileRepository, TokenCodec
from ..profile_cache import ProfileCache
from ..session_guard import SessionGuard
from .token_checks import require_usable_token


@dataclass(slots=True)
class AuthenticateTokenUseCase:
    """
    Application use case:
    - Verify an access token statelessly (signature, expiry, kind)
    - Apply the stateful revocation overlay from the ephemeral store
    - Map the principal -> AccessContext, profile read through the cache
    """

    codec: TokenCodec
    guard: SessionGuard
    profile_cache: ProfileCache
    profile_repository: Optional[ProfileRepository] = None

    def execute(self, access_token: str) -> AccessContext:
        """
        Authenticate a token and return an AccessContext.

        Raises:
            InvalidSignatureError / MalformedTokenError
            TokenExpiredError
            UnsupportedTokenKindError
            TokenRevokedError
            StoreUnavailableError
        """
        claims = require_usable_token(self.codec, access_token, TokenKind.ACCESS)

        if self.guard.is_revoked(access_token):
            raise TokenRevokedError("Token has been revoked")

        profile = self.profile_cache.resolve(claims.subject, self.profile_repository)
        return AccessContext(principal=claims.subject, claims=claims, profile=profile)
