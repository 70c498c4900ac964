"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user identity from the request.

Token lookup order:
1. the session cookie (settings.cookie_name, set by login/register)
2. `Authorization: Bearer <token>`

Every failure after "no token at all" is reported as the same
"Invalid token" 401, including a valid token for a user that no longer
exists, so the response never reveals which check failed.
"""

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from plannora.auth.jwt import TokenError, verify_token
from plannora.config import settings
from plannora.db.engine import get_db
from plannora.errors import AuthenticationError
from plannora.services.user_service import UserService

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated user making the request.

    Learn: handlers receive this instead of the raw token. `user_id` is
    what EventService scopes every query by.
    """

    def __init__(self, user_id: uuid.UUID, email: str, name: str):
        self.user_id = user_id
        self.email = email
        self.name = name

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id!s})"


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Cookie first, then bearer header. Returns None when neither is present."""
    token = request.cookies.get(settings.cookie_name)
    if token:
        return token
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return None


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Resolve the request's identity (401 if missing or invalid)."""
    token = extract_token(request, authorization)
    if not token:
        raise AuthenticationError("Authentication required")

    try:
        user_id = verify_token(token)
    except TokenError:
        raise AuthenticationError()

    user = await UserService(db).find_by_id(user_id)
    if user is None:
        logger.info("auth.token_user_missing")
        raise AuthenticationError()

    identity = CurrentIdentity(user_id=user.id, email=user.email, name=user.name)
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return identity
