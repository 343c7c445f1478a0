from enum import Enum


class TokenKind(Enum):
    ACCESS = "access"
    REFRESH = "refresh"


SESSION_KEY_PREFIX = "session:"
PROFILE_KEY_PREFIX = "user:"
REVOKED_MARKER = "revoked"

UNKNOWN = "Unknown"
