"""
token_authority

Issues, validates and revokes short-lived bearer tokens for employees and
enforces one active session per principal, on top of a TTL key/value store.
"""

__version__ = "0.1.0"

from .config import AuthoritySettings, settings_from_env
from .domain.constants import TokenKind
from .domain.entities import (
    AccessContext,
    ProfileRecord,
    ProfileSnapshot,
    Token,
    TokenClaims,
    TokenPair,
)
from .domain.exceptions import (
    AuthenticationError,
    DuplicateSessionError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    StoreUnavailableError,
    TokenExpiredError,
    TokenRevokedError,
    UnsupportedTokenKindError,
)
from .domain.ports import CredentialVerifier, ProfileRepository, SessionStore, TokenCodec
from .domain.value_objects import PrincipalId

from .application.profile_cache import ProfileCache
from .application.session_guard import SessionGuard
from .application.use_cases.authenticate import AuthenticateTokenUseCase
from .application.use_cases.login import LoginUseCase
from .application.use_cases.logout import LogoutUseCase
from .application.use_cases.refresh import RefreshAccessTokenUseCase

from .adapters.jwt.signing_key import SigningKeyProvider
from .adapters.jwt.token_codec import JWTTokenCodec
from .adapters.memory.session_store import InMemorySessionStore
from .adapters.redis.session_store import RedisSessionStore

from .integrations.common.authority_factory import AuthorityService, create_authority

__all__ = [
    "__version__",
    # config
    "AuthoritySettings",
    "settings_from_env",
    # domain core
    "TokenKind",
    "Token",
    "TokenClaims",
    "TokenPair",
    "ProfileRecord",
    "ProfileSnapshot",
    "AccessContext",
    "PrincipalId",
    "TokenCodec",
    "SessionStore",
    "ProfileRepository",
    "CredentialVerifier",
    # exceptions
    "AuthenticationError",
    "InvalidCredentialsError",
    "DuplicateSessionError",
    "InvalidTokenError",
    "InvalidSignatureError",
    "MalformedTokenError",
    "TokenExpiredError",
    "TokenRevokedError",
    "UnsupportedTokenKindError",
    "InfrastructureError",
    "StoreUnavailableError",
    # application
    "SessionGuard",
    "ProfileCache",
    "LoginUseCase",
    "LogoutUseCase",
    "RefreshAccessTokenUseCase",
    "AuthenticateTokenUseCase",
    # adapters
    "SigningKeyProvider",
    "JWTTokenCodec",
    "InMemorySessionStore",
    "RedisSessionStore",
    # façade
    "AuthorityService",
    "create_authority",
]
