"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. One token
type, valid for `token_expire_days` (30 by default), carrying the user id
in `sub`. There is no server-side revocation list: logout only clears
the client's cookie.

verify_token() fails with the same TokenError message whatever went
wrong, so callers cannot be used as an "expired vs. forged" oracle. The
actual reason is logged at debug level.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog

from plannora.config import settings

logger = structlog.get_logger()

INVALID_TOKEN = "Invalid token"


class TokenError(Exception):
    """Raised when token verification fails."""

    def __init__(self, message: str = INVALID_TOKEN):
        super().__init__(message)


def create_access_token(user_id: str, expires_days: Optional[int] = None) -> str:
    """Create a signed token bound to `user_id`."""
    now = datetime.now(timezone.utc)
    if expires_days is None:
        expires_days = settings.token_expire_days
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> str:
    """Verify a token and return the user id it is bound to.

    Raises TokenError on any failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("auth.token_rejected", reason="expired")
        raise TokenError()
    except jwt.InvalidTokenError as e:
        logger.debug("auth.token_rejected", reason=type(e).__name__)
        raise TokenError()

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        logger.debug("auth.token_rejected", reason="bad_subject")
        raise TokenError()
    return user_id
