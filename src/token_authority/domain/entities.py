from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Mapping, Optional, Union

from .constants import TokenKind, UNKNOWN


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified content of a signed token.

    `session_id` is shared by the pair minted at login and by every access
    token later refreshed from that pair.
    """
    subject: str
    kind: TokenKind
    issued_at: int
    expires_at: int
    session_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Token:
    """
    An issued token: the wire value plus the claims it was signed with.
    """
    value: str
    subject: str
    kind: TokenKind
    issued_at: int
    expires_at: int
    session_id: Optional[str] = None

    @property
    def expires_in(self) -> int:
        """Lifetime in seconds as granted at issuance."""
        return self.expires_at - self.issued_at

    @property
    def claims(self) -> TokenClaims:
        return TokenClaims(
            subject=self.subject,
            kind=self.kind,
            issued_at=self.issued_at,
            expires_at=self.expires_at,
            session_id=self.session_id,
        )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TokenPair:
    """Access + refresh tokens minted by one login event."""
    access: Token
    refresh: Token


@dataclass(slots=True)
class ProfileRecord:
    """
    Row of the external profile store, as far as this package cares.
    """
    id: Union[int, str, None]
    employee_id: str
    name: Optional[str] = None
    role: Optional[str] = None
    scope: Optional[str] = None
    shift: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ProfileSnapshot:
    """
    Minimal projection of a profile kept warm in the ephemeral store.
    """
    id: Union[int, str, None]
    employee_id: str
    name: str = UNKNOWN
    role: str = UNKNOWN
    scope: str = UNKNOWN
    shift: str = UNKNOWN

    @classmethod
    def from_record(cls, record: ProfileRecord) -> "ProfileSnapshot":
        return cls(
            id=record.id,
            employee_id=record.employee_id,
            name=record.name or UNKNOWN,
            role=record.role or UNKNOWN,
            scope=record.scope or UNKNOWN,
            shift=record.shift or UNKNOWN,
        )

    @classmethod
    def unknown(cls, employee_id: str) -> "ProfileSnapshot":
        return cls(id=None, employee_id=employee_id)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProfileSnapshot":
        return cls(
            id=data.get("id"),
            employee_id=data["employee_id"],
            name=data.get("name") or UNKNOWN,
            role=data.get("role") or UNKNOWN,
            scope=data.get("scope") or UNKNOWN,
            shift=data.get("shift") or UNKNOWN,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class AccessContext:
    """
    Result of authenticating an access token against the revocation overlay.
    """
    principal: str
    claims: TokenClaims
    profile: ProfileSnapshot

    @property
    def expires_at(self) -> int:
        return self.claims.expires_at

    @property
    def role(self) -> str:
        return self.profile.role
