"""Session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The session token lives for one day and carries everything the UI needs
to render the signed-in user: account id (as `sub`), staff profile id,
username, role and department.

Tokens are never stored server-side, so they cannot be revoked early;
logout just clears the cookie.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from staffdesk.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


class InvalidSignature(TokenError):
    """Token is malformed, tampered with, or signed with another key."""


class Expired(TokenError):
    """Token was valid but its `exp` has passed."""


@dataclass(frozen=True)
class SessionClaims:
    """Identity claims embedded in a session token."""

    account_id: int
    staff_id: int
    username: str
    role: str
    department: str

    def to_payload(self) -> dict:
        # PyJWT requires `sub` to be a string.
        return {
            "sub": str(self.account_id),
            "staff_id": self.staff_id,
            "username": self.username,
            "role": self.role,
            "department": self.department,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "SessionClaims":
        try:
            return cls(
                account_id=int(payload["sub"]),
                staff_id=int(payload["staff_id"]),
                username=payload["username"],
                role=payload["role"],
                department=payload["department"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSignature(f"Invalid token: missing or bad claim ({e})")


def session_lifetime() -> timedelta:
    return timedelta(hours=settings.session_lifetime_hours)


def issue_session_token(
    claims: SessionClaims,
    lifetime: Optional[timedelta] = None,
) -> str:
    """Create a signed session token that expires after `lifetime`."""
    now = datetime.now(timezone.utc)
    payload = {
        **claims.to_payload(),
        "iat": now,
        "exp": now + (lifetime or session_lifetime()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_session_token(token: str) -> SessionClaims:
    """Verify and decode a session token.

    Returns the embedded claims unchanged on success.
    Raises Expired or InvalidSignature on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise Expired("Token has expired")
    except jwt.InvalidTokenError as e:
        raise InvalidSignature(f"Invalid token: {e}")
    return SessionClaims.from_payload(payload)
