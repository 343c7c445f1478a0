# src/token_authority/domain/value_objects.py

from __future__ import annotations

from dataclasses import dataclass

from .constants import PROFILE_KEY_PREFIX, SESSION_KEY_PREFIX


@dataclass(frozen=True, slots=True)
class PrincipalId:
    """
    Opaque, immutable employee identifier.

    Every token subject and every ephemeral-store key is derived from it,
    so blank values are rejected up front.
    """
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError(f"Invalid principal id: {self.value!r}")

    @property
    def session_key(self) -> str:
        return f"{SESSION_KEY_PREFIX}{self.value}"

    @property
    def profile_key(self) -> str:
        return f"{PROFILE_KEY_PREFIX}{self.value}"

    def __str__(self) -> str:
        return self.value
