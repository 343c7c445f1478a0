from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials

from .security import bearer_scheme, extract_access_token
from ..common.authority_factory import AuthorityService
from ...domain.entities import AccessContext
from ...domain.exceptions import (
    AuthenticationError,
    DuplicateSessionError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    TokenRevokedError,
    UnsupportedTokenKindError,
)

STORE_RETRY_AFTER_SECONDS = 1


def to_http_exception(exc: Exception) -> HTTPException:
    """Translate a domain / infrastructure failure into an HTTP response."""
    if isinstance(exc, DuplicateSessionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, UnsupportedTokenKindError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, TokenExpiredError):
        detail = "Token expired"
    elif isinstance(exc, TokenRevokedError):
        detail = "Token revoked"
    elif isinstance(exc, (InvalidCredentialsError, InvalidTokenError, AuthenticationError)):
        detail = str(exc)
    elif isinstance(exc, InfrastructureError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication store temporarily unavailable",
            headers={"Retry-After": str(STORE_RETRY_AFTER_SECONDS)},
        )
    else:
        raise TypeError(f"No HTTP mapping for {type(exc).__name__}") from exc

    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass(slots=True)
class FastAPIAuthority:
    """
    FastAPI integration for token_authority.

    Wraps the framework-agnostic AuthorityService and exposes
    dependencies for downstream routes.
    """

    authority: AuthorityService

    # ------------------------------------------------------------------ #
    # Base dependencies
    # ------------------------------------------------------------------ #

    def get_current_principal(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> AccessContext:
        """Dependency: require a live, non-revoked access token."""
        token = extract_access_token(request, credentials)
        try:
            return self.authority.authenticate(token)
        except (AuthenticationError, InfrastructureError) as exc:
            raise to_http_exception(exc) from exc

    def get_optional_principal(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> AccessContext | None:
        """Dependency: anonymous when no usable token is presented."""
        try:
            token = extract_access_token(request, credentials)
        except HTTPException:
            return None

        try:
            return self.authority.authenticate(token)
        except AuthenticationError:
            return None
        except InfrastructureError as exc:
            raise to_http_exception(exc) from exc
