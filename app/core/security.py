"""
Admin gate for destructive session operations.

- Operators authenticate admin routes with an `X-Admin-Key` header.
- Only a bcrypt hash of the key is configured (`ADMIN_API_KEY_HASH`);
  with no hash configured every admin route is refused.
- The bulk purge additionally needs `ALLOW_PURGE=true`, so a leaked key
  alone cannot wipe a production store.
"""

import logging

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from app.core.config import settings

logger = logging.getLogger(__name__)

admin_key_scheme = APIKeyHeader(name="X-Admin-Key", auto_error=False)


# ── Key hashing ─────────────────────────────────────────────────────


def hash_admin_key(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_admin_key(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in configuration.
        logger.error("ADMIN_API_KEY_HASH is not a valid bcrypt hash")
        return False


# ── Dependencies ────────────────────────────────────────────────────


async def require_admin(api_key: str | None = Depends(admin_key_scheme)) -> None:
    if not settings.ADMIN_API_KEY_HASH:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin operations are disabled",
        )
    if not api_key or not verify_admin_key(api_key, settings.ADMIN_API_KEY_HASH):
        logger.warning("Rejected admin request with a missing or invalid key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
            headers={"WWW-Authenticate": "X-Admin-Key"},
        )


async def require_purge_enabled(_: None = Depends(require_admin)) -> None:
    if not settings.ALLOW_PURGE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Session purge is disabled on this deployment",
        )
