from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from token_authority import RedisSessionStore, create_authority
from token_authority.domain.constants import TokenKind
from token_authority.domain.entities import AccessContext
from token_authority.integrations.fastapi import create_fastapi_authority


def _build_app(authority) -> FastAPI:
    api, router = create_fastapi_authority(authority)
    app = FastAPI()
    app.include_router(router)

    @app.get("/whoami")
    def whoami(ctx: Optional[AccessContext] = Depends(api.get_optional_principal)):
        return {"principal": ctx.principal if ctx else None}

    return app


@pytest.fixture
def client(authority):
    return TestClient(_build_app(authority))


def _login(client, password="correct horse"):
    return client.post(
        "/auth/login", json={"employee_id": "E001", "password": password}
    )


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_login_returns_token_pair(client):
    resp = _login(client)
    assert resp.status_code == 200

    body = resp.json()
    assert body["access"]["expires_in"] == 900
    assert body["refresh"]["expires_in"] == 86400
    assert body["access"]["token"] != body["refresh"]["token"]


def test_second_login_conflicts(client):
    assert _login(client).status_code == 200
    assert _login(client).status_code == 409


def test_wrong_password_is_unauthorized(client):
    resp = _login(client, password="wrong")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User/Password is incorrect"


def test_login_body_is_validated(client):
    resp = client.post("/auth/login", json={"employee_id": "E001", "password": ""})
    assert resp.status_code == 422


def test_me_returns_cached_profile(client):
    access = _login(client).json()["access"]["token"]
    resp = client.get("/auth/me", headers=_bearer(access))

    assert resp.status_code == 200
    body = resp.json()
    assert body["employee_id"] == "E001"
    assert body["name"] == "Kim Minji"
    assert body["shift"] == "day"


def test_access_token_cookie_is_accepted(client):
    access = _login(client).json()["access"]["token"]
    client.cookies.set("access_token", access)
    assert client.get("/auth/me").status_code == 200


def test_missing_token_is_unauthorized(client):
    resp = client.get("/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Missing access token"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_logout_revokes_access_token(client):
    access = _login(client).json()["access"]["token"]

    resp = client.post("/auth/logout", headers=_bearer(access))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out"}

    resp = client.get("/auth/me", headers=_bearer(access))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token revoked"

    assert _login(client).status_code == 200


def test_expired_token_is_reported(authority, clock):
    client = TestClient(_build_app(authority))
    access = _login(client).json()["access"]["token"]
    clock.advance(900)

    resp = client.get("/auth/me", headers=_bearer(access))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_refresh_from_body(client):
    tokens = _login(client).json()
    resp = client.post(
        "/auth/refresh", json={"refresh_token": tokens["refresh"]["token"]}
    )
    assert resp.status_code == 200

    access = resp.json()["access"]
    assert access["expires_in"] == 900
    assert access["token"] != tokens["access"]["token"]
    assert client.get("/auth/me", headers=_bearer(access["token"])).status_code == 200


def test_refresh_from_cookie(client):
    refresh = _login(client).json()["refresh"]["token"]
    client.cookies.set("refresh_token", refresh)
    assert client.post("/auth/refresh").status_code == 200


def test_refresh_with_access_token_is_bad_request(client):
    access = _login(client).json()["access"]["token"]
    resp = client.post("/auth/refresh", json={"refresh_token": access})
    assert resp.status_code == 400


def test_refresh_without_token_is_unauthorized(client):
    resp = client.post("/auth/refresh", json={})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Missing refresh token"


def test_optional_principal(client):
    assert client.get("/whoami").json() == {"principal": None}
    assert client.get("/whoami", headers=_bearer("garbage")).json() == {"principal": None}

    access = _login(client).json()["access"]["token"]
    assert client.get("/whoami", headers=_bearer(access)).json() == {"principal": "E001"}


def test_store_outage_is_service_unavailable(settings, clock):
    redis_client = MagicMock()
    redis_client.get.side_effect = RedisConnectionError("connection refused")
    authority = create_authority(
        settings, store=RedisSessionStore(client=redis_client), clock=clock
    )
    access = authority.codec.issue("E001", TokenKind.ACCESS)

    resp = TestClient(_build_app(authority)).get("/auth/me", headers=_bearer(access.value))

    assert resp.status_code == 503
    assert resp.headers["Retry-After"] == "1"
