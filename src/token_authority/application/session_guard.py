from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain.constants import REVOKED_MARKER
from ..domain.exceptions import DuplicateSessionError
from ..domain.ports import SessionStore
from ..domain.value_objects import PrincipalId
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class SessionGuard:
    """
    Single-active-session policy and revocation marking.

    Per principal: NoSession -> Active -> (LoggedOut | Expired).

    - `session:<principal>` holds the current access token, with a TTL
      equal to that token's lifetime. Natural expiry needs no action.
    - A revoked access token is stored under its own raw value with the
      token's remaining lifetime, so the marker never outlives the token.
    """

    store: SessionStore

    def acquire_session(self, principal: str, access_token: str, ttl: float) -> None:
        """
        First login wins.

        Raises:
            DuplicateSessionError if a session already exists for `principal`.
        """
        key = PrincipalId(principal).session_key
        if not self.store.set_if_absent(key, access_token, ttl):
            logger.warning("login_rejected_duplicate_session", principal=principal)
            raise DuplicateSessionError(principal)

    def release_session(
        self,
        principal: str,
        access_token: str,
        remaining_ttl: float,
    ) -> None:
        """
        Drop the session key and mark `access_token` revoked.

        Idempotent: a second release finds nothing to delete and rewrites
        the marker.
        """
        self.store.delete(PrincipalId(principal).session_key)
        if remaining_ttl > 0:
            self.store.set(access_token, REVOKED_MARKER, remaining_ttl)

    def rebind_session(
        self,
        principal: str,
        current_token: str,
        access_token: str,
        ttl: float,
    ) -> bool:
        """
        Point the principal's session at a freshly issued access token, but
        only while it still holds `current_token`.

        A released, lapsed or re-acquired session is never recreated or
        overwritten.
        """
        key = PrincipalId(principal).session_key
        if not self.store.replace_if_equal(key, current_token, access_token, ttl):
            logger.info("session_rebind_skipped", principal=principal)
            return False
        logger.info("session_rebound", principal=principal, ttl=ttl)
        return True

    def active_token(self, principal: str) -> Optional[str]:
        return self.store.get(PrincipalId(principal).session_key)

    def session_ttl(self, principal: str) -> Optional[float]:
        return self.store.ttl(PrincipalId(principal).session_key)

    def is_revoked(self, access_token: str) -> bool:
        return self.store.get(access_token) == REVOKED_MARKER
