from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...domain.entities import ProfileRecord, ProfileSnapshot, TokenPair
from ...domain.exceptions import InvalidCredentialsError
from ...domain.ports import TokenCodec
from ...domain.value_objects import PrincipalId
from ...logging import get_logger
from ..profile_cache import ProfileCache
from ..session_guard import SessionGuard

logger = get_logger(__name__)


@dataclass(slots=True)
class LoginUseCase:
    """
    Application use case:
    - Accept a principal whose credentials were checked upstream
    - Mint an access + refresh pair
    - Claim the principal's single session slot
    - Warm the profile cache

    Tokens are only returned once the session slot is held; if anything
    fails after that, the slot is released again before the error
    propagates.
    """

    codec: TokenCodec
    guard: SessionGuard
    profile_cache: ProfileCache
    profile_ttl_seconds: float

    def execute(
        self,
        principal: str,
        *,
        credentials_verified: bool,
        profile: Optional[ProfileRecord],
    ) -> TokenPair:
        """
        Raises:
            InvalidCredentialsError
            DuplicateSessionError
            StoreUnavailableError
        """
        PrincipalId(principal)
        if not credentials_verified or profile is None:
            logger.warning("login_rejected_invalid_credentials", principal=principal)
            raise InvalidCredentialsError()
        if profile.employee_id != principal:
            raise ValueError(
                f"Profile {profile.employee_id!r} does not belong to {principal!r}"
            )

        pair = self.codec.issue_pair(principal)
        session_ttl = self.codec.remaining_ttl(pair.access.value)

        # DuplicateSessionError propagates here; the pair is simply dropped.
        self.guard.acquire_session(principal, pair.access.value, session_ttl)

        try:
            self.profile_cache.put(
                principal,
                ProfileSnapshot.from_record(profile),
                self.profile_ttl_seconds,
            )
        except BaseException:
            self._compensate(principal, pair)
            raise

        logger.info("login_succeeded", principal=principal, session_ttl=session_ttl)
        return pair

    def _compensate(self, principal: str, pair: TokenPair) -> None:
        logger.warning("login_compensating_release", principal=principal)
        try:
            self.guard.release_session(
                principal,
                pair.access.value,
                self.codec.remaining_ttl(pair.access.value),
            )
        except Exception as exc:  # noqa: BLE001
            # The original failure is what the caller sees.
            logger.error(
                "login_compensation_failed", principal=principal, error=str(exc)
            )
