from typing import Optional, Union

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from .deps import FastAPIAuthority, to_http_exception
from .security import bearer_scheme, extract_access_token, extract_refresh_token
from ...domain.entities import AccessContext, Token, TokenPair
from ...domain.exceptions import AuthenticationError, InfrastructureError


class LoginRequest(BaseModel):
    employee_id: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class TokenBody(BaseModel):
    token: str
    expires_in: int

    @classmethod
    def from_token(cls, token: Token) -> "TokenBody":
        return cls(token=token.value, expires_in=token.expires_in)


class TokenPairResponse(BaseModel):
    access: TokenBody
    refresh: TokenBody

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenPairResponse":
        return cls(
            access=TokenBody.from_token(pair.access),
            refresh=TokenBody.from_token(pair.refresh),
        )


class AccessTokenResponse(BaseModel):
    access: TokenBody


class MessageResponse(BaseModel):
    message: str


class PrincipalResponse(BaseModel):
    employee_id: str
    id: Union[int, str, None] = None
    name: str
    role: str
    scope: str
    shift: str
    expires_at: int


def create_auth_router(api: FastAPIAuthority, *, prefix: str = "/auth") -> APIRouter:
    """
    Login / logout / refresh endpoints on top of FastAPIAuthority.

    Login needs the authority to be built with a profile repository and
    a credential verifier.
    """
    router = APIRouter(prefix=prefix, tags=["auth"])
    authority = api.authority

    @router.post("/login", response_model=TokenPairResponse)
    def login(body: LoginRequest) -> TokenPairResponse:
        try:
            pair = authority.login_with_credentials(body.employee_id, body.password)
        except (AuthenticationError, InfrastructureError) as exc:
            raise to_http_exception(exc) from exc
        return TokenPairResponse.from_pair(pair)

    @router.post("/logout", response_model=MessageResponse)
    def logout(
            request: Request,
            credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> MessageResponse:
        token = extract_access_token(request, credentials)
        try:
            authority.logout(token)
        except (AuthenticationError, InfrastructureError) as exc:
            raise to_http_exception(exc) from exc
        return MessageResponse(message="Logged out")

    @router.post("/refresh", response_model=AccessTokenResponse)
    def refresh(
            request: Request,
            body: Optional[RefreshRequest] = None,
    ) -> AccessTokenResponse:
        token = extract_refresh_token(request, body.refresh_token if body else None)
        try:
            access = authority.refresh_access_token(token)
        except (AuthenticationError, InfrastructureError) as exc:
            raise to_http_exception(exc) from exc
        return AccessTokenResponse(access=TokenBody.from_token(access))

    @router.get("/me", response_model=PrincipalResponse)
    def me(ctx: AccessContext = Depends(api.get_current_principal)) -> PrincipalResponse:
        profile = ctx.profile
        return PrincipalResponse(
            employee_id=ctx.principal,
            id=profile.id,
            name=profile.name,
            role=profile.role,
            scope=profile.scope,
            shift=profile.shift,
            expires_at=ctx.expires_at,
        )

    return router
