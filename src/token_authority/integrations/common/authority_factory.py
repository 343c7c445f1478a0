from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from ...adapters.jwt.signing_key import SigningKeyProvider
from ...adapters.jwt.token_codec import JWTTokenCodec
from ...adapters.redis.session_store import RedisSessionStore
from ...application.profile_cache import ProfileCache
from ...application.session_guard import SessionGuard
from ...application.use_cases.authenticate import AuthenticateTokenUseCase
from ...application.use_cases.login import LoginUseCase
from ...application.use_cases.logout import LogoutUseCase
from ...application.use_cases.refresh import RefreshAccessTokenUseCase
from ...config import AuthoritySettings
from ...domain.entities import AccessContext, ProfileRecord, Token, TokenPair
from ...domain.exceptions import InvalidCredentialsError
from ...domain.ports import CredentialVerifier, ProfileRepository, SessionStore
from ...logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class AuthorityService:
    """
    Framework-agnostic façade over the token lifecycle.

    Integrations (FastAPI, CLI) adapt this to their own dependency /
    command systems.
    """

    login_use_case: LoginUseCase
    logout_use_case: LogoutUseCase
    refresh_use_case: RefreshAccessTokenUseCase
    authenticate_use_case: AuthenticateTokenUseCase
    guard: SessionGuard
    codec: JWTTokenCodec
    profile_repository: Optional[ProfileRepository] = None
    credential_verifier: Optional[CredentialVerifier] = None

    # --- Core operations --------------------------------------------------

    def login(
            self,
            principal: str,
            *,
            credentials_verified: bool,
            profile: Optional[ProfileRecord],
    ) -> TokenPair:
        """Verified principal -> access + refresh pair (or raise)."""
        return self.login_use_case.execute(
            principal,
            credentials_verified=credentials_verified,
            profile=profile,
        )

    def logout(self, access_token: str) -> None:
        self.logout_use_case.execute(access_token)

    def refresh_access_token(self, refresh_token: str) -> Token:
        return self.refresh_use_case.execute(refresh_token)

    def authenticate(self, access_token: str) -> AccessContext:
        """Access token -> AccessContext (or raise auth exceptions)."""
        return self.authenticate_use_case.execute(access_token)

    # --- Convenience ------------------------------------------------------

    def login_with_credentials(self, principal: str, secret: str) -> TokenPair:
        """
        Resolve the profile and check the secret via the external ports,
        then log in. Unknown principal and wrong secret are indistinguishable,
        in message and in work done: the verifier runs on both paths.
        """
        if self.profile_repository is None or self.credential_verifier is None:
            raise RuntimeError(
                "login_with_credentials needs a profile repository and a credential verifier"
            )

        profile = self.profile_repository.find_by_principal(principal)
        verified = self.credential_verifier.verify(principal, secret)
        if profile is None:
            logger.warning("login_rejected_invalid_credentials", principal=principal)
            raise InvalidCredentialsError()

        return self.login(principal, credentials_verified=verified, profile=profile)


def create_authority(
        settings: AuthoritySettings,
        *,
        store: SessionStore | None = None,
        profile_repository: ProfileRepository | None = None,
        credential_verifier: CredentialVerifier | None = None,
        clock: Callable[[], float] = time.time,
) -> AuthorityService:
    """
    High-level factory: AuthoritySettings -> AuthorityService.

    - derives the signing key once
    - builds the JWT codec and (unless one is given) a Redis store
    - wires SessionGuard, ProfileCache and the four use cases
    """
    signing_key = SigningKeyProvider(settings.secret_key)
    codec = JWTTokenCodec(
        signing_key,
        access_ttl_seconds=settings.access_token_ttl_seconds,
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
        issuer=settings.issuer,
        clock=clock,
    )

    if store is None:
        store = RedisSessionStore(
            settings.redis_url,
            socket_timeout=settings.store_timeout_seconds,
            retries=settings.store_retries,
        )

    guard = SessionGuard(store=store)
    profile_cache = ProfileCache(store=store)
    profile_ttl = settings.profile_cache_ttl_seconds

    return AuthorityService(
        login_use_case=LoginUseCase(
            codec=codec,
            guard=guard,
            profile_cache=profile_cache,
            profile_ttl_seconds=profile_ttl,
        ),
        logout_use_case=LogoutUseCase(codec=codec, guard=guard),
        refresh_use_case=RefreshAccessTokenUseCase(
            codec=codec,
            guard=guard,
            profile_cache=profile_cache,
            profile_ttl_seconds=profile_ttl,
            rebind_session=settings.rebind_session_on_refresh,
            profile_repository=profile_repository,
        ),
        authenticate_use_case=AuthenticateTokenUseCase(
            codec=codec,
            guard=guard,
            profile_cache=profile_cache,
            profile_repository=profile_repository,
        ),
        guard=guard,
        codec=codec,
        profile_repository=profile_repository,
        credential_verifier=credential_verifier,
    )
