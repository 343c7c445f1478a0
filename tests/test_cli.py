import json
from unittest.mock import MagicMock

import pytest

from token_authority import RedisSessionStore, create_authority
from token_authority.cli import main


def _run(capsys, authority, *argv):
    code = main(list(argv), authority=authority)
    return code, json.loads(capsys.readouterr().out)


@pytest.fixture
def pair(authority, profile):
    return authority.login("E001", credentials_verified=True, profile=profile)


def test_decode_shows_claims(capsys, authority, pair):
    code, out = _run(capsys, authority, "decode", pair.refresh.value)

    assert code == 0
    assert out["ok"] is True
    assert out["subject"] == "E001"
    assert out["kind"] == "refresh"
    assert out["expired"] is False
    assert out["remaining_ttl"] == pytest.approx(86400)
    assert out["revoked"] is False


def test_decode_reports_bad_token(capsys, authority):
    code, out = _run(capsys, authority, "decode", "garbage")
    assert code == 1
    assert out == {"ok": False, "error": "MalformedTokenError", "detail": out["detail"]}


def test_session_reports_active_principal(capsys, authority, pair):
    code, out = _run(capsys, authority, "session", "E001")
    assert code == 0
    assert out["active"] is True
    assert out["ttl"] == pytest.approx(900)

    code, out = _run(capsys, authority, "session", "E002")
    assert out == {"ok": True, "principal": "E002", "active": False, "ttl": None}


def test_logout_then_decode_shows_revoked(capsys, authority, pair):
    code, out = _run(capsys, authority, "logout", pair.access.value)
    assert code == 0
    assert out["logged_out"] == "E001"

    _, out = _run(capsys, authority, "decode", pair.access.value)
    assert out["revoked"] is True

    _, out = _run(capsys, authority, "session", "E001")
    assert out["active"] is False


def test_logout_rejects_refresh_token(capsys, authority, pair):
    code, out = _run(capsys, authority, "logout", pair.refresh.value)
    assert code == 1
    assert out["error"] == "UnsupportedTokenKindError"


def test_missing_environment_is_reported(capsys, monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setattr("token_authority.cli.configure_logging_from_env", lambda **_: None)

    code = main(["session", "E001"])

    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["error"] == "RuntimeError"
    assert "JWT_SECRET_KEY" in out["detail"]


def test_session_without_expiry_stays_valid_json(capsys, settings, clock):
    redis_client = MagicMock()
    redis_client.get.return_value = "opaque-token"
    redis_client.pttl.return_value = -1
    authority = create_authority(
        settings, store=RedisSessionStore(client=redis_client), clock=clock
    )

    code = main(["session", "E001"], authority=authority)

    raw = capsys.readouterr().out
    assert code == 0
    assert "Infinity" not in raw
    assert json.loads(raw)["ttl"] == "no-expiry"
