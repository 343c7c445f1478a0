from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from ..domain.entities import ProfileSnapshot
from ..domain.ports import ProfileRepository, SessionStore
from ..domain.value_objects import PrincipalId
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class ProfileCache:
    """
    Read-through cache of the minimal profile snapshot.

    The cache is an optimisation, not a source of truth: a miss falls back
    to the profile store, then to "Unknown" fields.
    """

    store: SessionStore

    def put(self, principal: str, snapshot: ProfileSnapshot, ttl: float) -> None:
        value = json.dumps(snapshot.to_dict(), separators=(",", ":"))
        self.store.set(PrincipalId(principal).profile_key, value, ttl)

    def extend_ttl(self, principal: str, ttl: float) -> bool:
        """Re-arm the TTL without rewriting the value; False on a miss."""
        return self.store.expire(PrincipalId(principal).profile_key, ttl)

    def touch(
        self,
        principal: str,
        ttl: float,
        repository: Optional[ProfileRepository] = None,
    ) -> bool:
        """
        Extend the snapshot's TTL; on a miss, re-warm it from `repository`.

        Returns False when no snapshot could be kept warm.
        """
        if self.extend_ttl(principal, ttl):
            return True

        logger.debug("profile_cache_miss", principal=principal)
        if repository is None:
            return False
        record = repository.find_by_principal(principal)
        if record is None:
            return False
        self.put(principal, ProfileSnapshot.from_record(record), ttl)
        return True

    def get(self, principal: str) -> Optional[ProfileSnapshot]:
        raw = self.store.get(PrincipalId(principal).profile_key)
        if raw is None:
            return None
        try:
            return ProfileSnapshot.from_mapping(json.loads(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("profile_cache_corrupt", principal=principal, error=str(exc))
            return None

    def resolve(
        self,
        principal: str,
        repository: Optional[ProfileRepository] = None,
    ) -> ProfileSnapshot:
        cached = self.get(principal)
        if cached is not None:
            return cached

        logger.debug("profile_cache_miss", principal=principal)
        if repository is not None:
            record = repository.find_by_principal(principal)
            if record is not None:
                return ProfileSnapshot.from_record(record)

        return ProfileSnapshot.unknown(principal)
