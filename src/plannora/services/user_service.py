"""User service — the credential store.

Learn: Service layer separates business logic from HTTP routing.
Routes (and the CLI) call services, services call the database.

Registration is race-safe because users.email carries a UNIQUE
constraint: the SELECT pre-check only exists to give the common case a
clean error, and an IntegrityError from a concurrent insert is mapped to
the same ConflictError.
"""

import asyncio
import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from plannora.auth.password import dummy_hash, hash_password, verify_password
from plannora.db.engine import storage_operation
from plannora.db.models import User
from plannora.errors import AuthenticationError, ConflictError
from plannora.schemas.user import normalize_email

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    """Business logic for accounts and credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @storage_operation("users.register")
    async def register(self, name: str, email: str, password: str) -> User:
        email = normalize_email(email)
        if await self._get_by_email(email) is not None:
            logger.info("auth.register_duplicate")
            raise ConflictError()

        # bcrypt is CPU-bound; keep it off the event loop. A hashing
        # failure aborts here, before anything is added to the session.
        password_hash = await asyncio.to_thread(hash_password, password)
        user = User(email=email, name=name.strip(), password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.register_race_lost")
            raise ConflictError()

        await self.db.refresh(user)
        logger.info("auth.registered", user_id=str(user.id))
        return user

    @storage_operation("users.authenticate")
    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials. Unknown email and wrong password fail alike."""
        user = await self._get_by_email(normalize_email(email))
        if user is None:
            # Same bcrypt cost as a real check, so timing does not leak existence.
            await asyncio.to_thread(verify_password, password, dummy_hash())
            logger.info("auth.login_failed")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info("auth.login_failed", user_id=str(user.id))
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("auth.login", user_id=str(user.id))
        return user

    @storage_operation("users.find_by_email")
    async def find_by_email(self, email: str) -> User | None:
        return await self._get_by_email(normalize_email(email))

    @storage_operation("users.find_by_id")
    async def find_by_id(self, user_id: str | uuid.UUID) -> User | None:
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                return None
        return await self.db.get(User, user_id)

    @storage_operation("users.list")
    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def _get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()
