from __future__ import annotations

from .constants import TokenKind


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised for a wrong secret *or* an unknown principal (never distinguished)."""

    def __init__(self, message: str = "User/Password is incorrect") -> None:
        super().__init__(message)


class DuplicateSessionError(AuthenticationError):
    """Raised when the principal already holds an active session."""

    def __init__(self, principal: str) -> None:
        super().__init__(
            "User is already logged in. Please logout from other devices first."
        )
        self.principal = principal


class InvalidTokenError(AuthenticationError):
    """Raised when token is malformed or invalid."""
    pass


class InvalidSignatureError(InvalidTokenError):
    """Raised when the token signature does not match."""
    pass


class MalformedTokenError(InvalidTokenError):
    """Raised when the token structure or claims cannot be parsed."""
    pass


class TokenExpiredError(AuthenticationError):
    """Raised when token has expired."""
    pass


class TokenRevokedError(AuthenticationError):
    """Raised when token was explicitly invalidated by logout."""
    pass


class UnsupportedTokenKindError(AuthenticationError):
    """Raised when a token of the wrong kind is presented for an operation."""

    def __init__(self, expected: TokenKind, actual: TokenKind) -> None:
        super().__init__(
            f"Expected a {expected.value} token, got a {actual.value} token"
        )
        self.expected = expected
        self.actual = actual


class InfrastructureError(Exception):
    """Base class for failures of collaborating infrastructure."""

    retryable: bool = False


class StoreUnavailableError(InfrastructureError):
    """Raised when the ephemeral or profile store cannot be reached."""

    retryable = True
