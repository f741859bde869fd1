"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor (rounds=12 by default) takes ~100ms+ per hash, so the
async wrappers push the work onto a thread instead of stalling the loop.
"""

import asyncio
from functools import lru_cache

import bcrypt

from staffdesk.config import settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash (never decrypts)."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("staffdesk-no-such-user")


def _verify_dummy(password: str) -> bool:
    verify_password(password, _dummy_hash())
    return False


async def verify_unknown_user_async(password: str) -> bool:
    """Spend a real bcrypt check on a throwaway hash; always False.

    Used when the username doesn't exist, so that path costs the same as
    a wrong password.
    """
    return await asyncio.to_thread(_verify_dummy, password)
