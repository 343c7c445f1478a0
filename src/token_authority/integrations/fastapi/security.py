from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_COOKIE_NAME = "access_token"
REFRESH_COOKIE_NAME = "refresh_token"


def _bearer_value(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None and (credentials.credentials or "").strip():
        return credentials.credentials.strip()

    header = request.headers.get("Authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def _missing(what: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=f"Missing {what}",
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
    cookie_name: str = ACCESS_COOKIE_NAME,
) -> str:
    """
    Access token from the Bearer header, falling back to a cookie.

    Raises HTTPException(401) if neither carries one.
    """
    token = _bearer_value(request, credentials) or request.cookies.get(cookie_name)
    if not token:
        raise _missing("access token")
    return token


def extract_refresh_token(
    request: Request,
    body_token: Optional[str] = None,
    cookie_name: str = REFRESH_COOKIE_NAME,
) -> str:
    """
    Refresh token from the request body, falling back to its own cookie.

    The Authorization header carries access tokens and is not consulted.
    """
    token = (body_token or "").strip() or request.cookies.get(cookie_name)
    if not token:
        raise _missing("refresh token")
    return token
