# src/token_authority/cli.py

from __future__ import annotations

import argparse
import json
import math
import sys
from typing import Any, Callable, Sequence

from .config import settings_from_env
from .integrations.common.authority_factory import AuthorityService, create_authority
from .logging import configure_logging_from_env


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="token-authority",
        description="Inspect tokens, sessions and revocation markers "
                    "held by the token authority",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    decode = sub.add_parser(
        "decode",
        help="Verify a token and show its claims, expiry and revocation state.",
    )
    decode.add_argument("token")

    session = sub.add_parser(
        "session",
        help="Show the active session (if any) of a principal.",
    )
    session.add_argument("principal", help="Employee id")

    logout = sub.add_parser(
        "logout",
        help="Force-logout: end the session and revoke the given access token.",
    )
    logout.add_argument("token")

    return parser.parse_args(args=argv)


def _decode(authority: AuthorityService, args: argparse.Namespace) -> dict[str, Any]:
    claims = authority.codec.verify(args.token)
    return {
        "subject": claims.subject,
        "kind": claims.kind.value,
        "issued_at": claims.issued_at,
        "expires_at": claims.expires_at,
        "expired": authority.codec.is_expired(args.token),
        "remaining_ttl": authority.codec.remaining_ttl(args.token),
        "revoked": authority.guard.is_revoked(args.token),
    }


def _session(authority: AuthorityService, args: argparse.Namespace) -> dict[str, Any]:
    token = authority.guard.active_token(args.principal)
    ttl = authority.guard.session_ttl(args.principal) if token else None
    return {
        "principal": args.principal,
        "active": token is not None,
        # a key without expiry has an infinite TTL, which JSON cannot carry
        "ttl": ttl if ttl is None or math.isfinite(ttl) else "no-expiry",
    }


def _logout(authority: AuthorityService, args: argparse.Namespace) -> dict[str, Any]:
    authority.logout(args.token)
    return {"logged_out": authority.codec.verify(args.token).subject}


_COMMANDS: dict[str, Callable[[AuthorityService, argparse.Namespace], dict[str, Any]]] = {
    "decode": _decode,
    "session": _session,
    "logout": _logout,
}


def main(
    argv: Sequence[str] | None = None,
    authority: AuthorityService | None = None,
) -> int:
    args = _parse_args(argv)

    try:
        if authority is None:
            configure_logging_from_env(stream=sys.stderr)
            authority = create_authority(settings_from_env())
        summary = _COMMANDS[args.command](authority, args)
        json.dump({"ok": True, **summary}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0
    except Exception as exc:  # noqa: BLE001
        json.dump(
            {"ok": False, "error": type(exc).__name__, "detail": str(exc)},
            sys.stdout,
            indent=2,
        )
        sys.stdout.write("\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
