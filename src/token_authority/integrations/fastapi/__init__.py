from __future__ import annotations

from fastapi import APIRouter

from .deps import FastAPIAuthority, to_http_exception
from .router import create_auth_router
from ..common.authority_factory import AuthorityService


def create_fastapi_authority(
    authority: AuthorityService,
    *,
    prefix: str = "/auth",
) -> tuple[FastAPIAuthority, APIRouter]:
    """
    High-level helper for FastAPI apps:

    - Wraps an AuthorityService in FastAPIAuthority, exposing

        fastapi_authority.get_current_principal
        fastapi_authority.get_optional_principal

    - Builds the /auth router (login, logout, refresh, me)

    Usage:

        authority = create_authority(settings_from_env(), ...)
        fastapi_authority, auth_router = create_fastapi_authority(authority)
        app.include_router(auth_router)
    """
    api = FastAPIAuthority(authority=authority)
    return api, create_auth_router(api, prefix=prefix)


__all__ = [
    "FastAPIAuthority",
    "create_auth_router",
    "create_fastapi_authority",
    "to_http_exception",
]
