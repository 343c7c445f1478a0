from __future__ import annotations

import os
from dataclasses import dataclass

from .domain.constants import TokenKind


@dataclass(slots=True)
class AuthoritySettings:
    """
    Signing, TTL and ephemeral-store settings for the authority.

    Host code decides how to construct this (env, config file, etc.).
    """
    secret_key: str
    access_token_ttl_seconds: int = 900
    refresh_token_ttl_seconds: int = 86400
    issuer: str = "token-authority"

    profile_cache_ttl_minutes: int = 60

    # Ephemeral store wiring
    redis_url: str = "redis://localhost:6379/0"
    store_timeout_seconds: float = 5.0
    store_retries: int = 3

    rebind_session_on_refresh: bool = False

    def __post_init__(self) -> None:
        if self.access_token_ttl_seconds <= 0 or self.refresh_token_ttl_seconds <= 0:
            raise ValueError("Token TTLs must be positive")
        if self.access_token_ttl_seconds >= self.refresh_token_ttl_seconds:
            raise ValueError(
                "Access token TTL must be shorter than refresh token TTL "
                f"({self.access_token_ttl_seconds}s >= {self.refresh_token_ttl_seconds}s)"
            )
        if self.profile_cache_ttl_minutes <= 0:
            raise ValueError("Profile cache TTL must be positive")
        if self.store_timeout_seconds <= 0:
            raise ValueError("Store timeout must be positive")

    @property
    def profile_cache_ttl_seconds(self) -> int:
        return self.profile_cache_ttl_minutes * 60

    def ttl_for(self, kind: TokenKind) -> int:
        if kind is TokenKind.REFRESH:
            return self.refresh_token_ttl_seconds
        return self.access_token_ttl_seconds


def settings_from_env() -> AuthoritySettings:
    def _bool(key: str, default: bool = False) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _int(key: str, default: int) -> int:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise RuntimeError(f"{key} must be an integer, got {raw!r}") from exc

    def _float(key: str, default: float) -> float:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise RuntimeError(f"{key} must be a number, got {raw!r}") from exc

    secret_key = os.getenv("JWT_SECRET_KEY")
    redis_url = os.getenv("REDIS_URL")
    missing = [
        n
        for n, v in [
            ("JWT_SECRET_KEY", secret_key),
            ("REDIS_URL", redis_url),
        ]
        if not v
    ]
    if missing:
        raise RuntimeError(f"Missing authority settings: {', '.join(missing)}")

    return AuthoritySettings(
        secret_key=secret_key,
        access_token_ttl_seconds=_int("JWT_ACCESS_TOKEN_EXPIRES_IN", 900),
        refresh_token_ttl_seconds=_int("JWT_REFRESH_TOKEN_EXPIRES_IN", 86400),
        issuer=os.getenv("JWT_ISSUER") or "token-authority",
        profile_cache_ttl_minutes=_int("PROFILE_CACHE_TTL_MINUTES", 60),
        redis_url=redis_url,
        store_timeout_seconds=_float("STORE_TIMEOUT_SECONDS", 5.0),
        store_retries=_int("STORE_RETRIES", 3),
        rebind_session_on_refresh=_bool("REBIND_SESSION_ON_REFRESH", False),
    )
