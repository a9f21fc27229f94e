# tubely/core/security.py
from __future__ import annotations

"""
Tubely — Bearer JWT authentication
==================================
- `create_access_token(user_id)`: HS* token with `sub`, `iat`, `exp`.
- `decode_access_token(token)`: signature + expiry check via python-jose.
- `get_current_user_id`: FastAPI dependency returning the caller's UUID.

Users and sessions are managed elsewhere; this module only verifies that a
request carries a valid token and extracts the subject.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from tubely.core.config import settings
from tubely.core.exceptions import InvalidTokenException

logger = logging.getLogger(__name__)

ISSUER = "tubely-access"
security = HTTPBearer(auto_error=False)


def create_access_token(user_id: UUID | str, *, expires_in: timedelta = timedelta(hours=1)) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "iss": ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            issuer=ISSUER,
        )
    except ExpiredSignatureError:
        raise InvalidTokenException(detail="Token has expired")
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise InvalidTokenException(detail="Couldn't validate JWT")


def get_user_id_from_payload(payload: Dict[str, Any]) -> UUID:
    try:
        return UUID(str(payload.get("sub")))
    except (TypeError, ValueError):
        raise InvalidTokenException(detail="Token subject is not a user id")


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    """Authenticate the caller from `Authorization: Bearer <jwt>`."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise InvalidTokenException(detail="Couldn't find JWT")

    user_id = get_user_id_from_payload(decode_access_token(credentials.credentials))
    request.state.user_id = user_id
    return user_id
