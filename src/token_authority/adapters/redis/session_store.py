from __future__ import annotations

import contextlib
import math
from typing import Iterator, Optional

from redis import Redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from ...domain.exceptions import StoreUnavailableError
from ...domain.ports import SessionStore
from ...logging import get_logger

logger = get_logger(__name__)

# Compare-and-set; Redis runs the script atomically.
_REPLACE_IF_EQUAL_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    redis.call('SET', KEYS[1], ARGV[2], 'PX', ARGV[3])
    return 1
end
return 0
"""


class RedisSessionStore(SessionStore):
    """
    Redis-backed ephemeral store.

    - `set_if_absent` is a single `SET key value NX PX ttl`, so concurrent
      logins for one principal resolve to exactly one winner.
    - `replace_if_equal` is a Lua compare-and-set on the same key.
    - Every command is bounded by `socket_timeout`; connection and timeout
      errors are retried with exponential backoff, then surfaced as
      StoreUnavailableError.
    """

    DEFAULT_OPERATION_TIMEOUT = 5.0

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        *,
        socket_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        retries: int = 3,
        client: Optional[Redis] = None,
    ) -> None:
        self.redis_url = redis_url
        self.client = client or Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=Retry(ExponentialBackoff(), retries),
            retry_on_error=[RedisConnectionError, RedisTimeoutError],
        )

    @staticmethod
    def _ttl_millis(ttl: float) -> int:
        """Redis rejects zero/negative expiries; clamp to at least 1ms."""
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")
        return max(1, int(math.ceil(ttl * 1000)))

    @contextlib.contextmanager
    def _translate_errors(self, operation: str, key: str) -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            logger.warning(
                "store_unavailable", operation=operation, key=key, error=str(exc)
            )
            raise StoreUnavailableError(
                f"Ephemeral store unavailable during {operation}"
            ) from exc

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def set(self, key: str, value: str, ttl: float) -> None:
        px = self._ttl_millis(ttl)
        with self._translate_errors("set", key):
            self.client.set(key, value, px=px)

    def get(self, key: str) -> Optional[str]:
        with self._translate_errors("get", key):
            return self.client.get(key)

    def delete(self, key: str) -> None:
        with self._translate_errors("delete", key):
            self.client.delete(key)

    def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        px = self._ttl_millis(ttl)
        with self._translate_errors("set_if_absent", key):
            return bool(self.client.set(key, value, px=px, nx=True))

    def replace_if_equal(self, key: str, expected: str, value: str, ttl: float) -> bool:
        px = self._ttl_millis(ttl)
        with self._translate_errors("replace_if_equal", key):
            return bool(
                self.client.eval(_REPLACE_IF_EQUAL_SCRIPT, 1, key, expected, value, px)
            )

    def expire(self, key: str, ttl: float) -> bool:
        px = self._ttl_millis(ttl)
        with self._translate_errors("expire", key):
            return bool(self.client.pexpire(key, px))

    def ttl(self, key: str) -> Optional[float]:
        with self._translate_errors("ttl", key):
            remaining = self.client.pttl(key)
        # -2: no such key, -1: key without expiry
        if remaining is None or remaining == -2:
            return None
        if remaining == -1:
            return math.inf
        return remaining / 1000.0

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def ping(self) -> bool:
        """Assert connectivity before serving traffic."""
        with self._translate_errors("ping", "-"):
            return bool(self.client.ping())

    def close(self) -> None:
        self.client.close()
