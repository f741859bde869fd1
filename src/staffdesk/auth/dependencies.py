"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract and
validate the current staff identity from the `token` cookie. The
resulting StaffIdentity is passed explicitly to services; nothing is
stashed on the request object.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request

from staffdesk.auth.jwt import SessionClaims, TokenError, verify_session_token
from staffdesk.config import settings
from staffdesk.exceptions import InvalidToken, Unauthenticated

logger = structlog.get_logger()

# The verified claims are the identity context; alias keeps call sites readable.
StaffIdentity = SessionClaims


def get_session_token(request: Request) -> Optional[str]:
    """Read the raw session token from the cookie jar (None if absent)."""
    return request.cookies.get(settings.session_cookie_name) or None


async def get_current_staff(
    token: Optional[str] = Depends(get_session_token),
) -> StaffIdentity:
    """Resolve the session cookie into a StaffIdentity (401 otherwise)."""
    if not token:
        raise Unauthenticated()

    try:
        identity = verify_session_token(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise InvalidToken()

    structlog.contextvars.bind_contextvars(account_id=identity.account_id)
    return identity
