"""
User repository: the credential store used by the auth flow.

The password hash column is deferred with raise-on-load, so it is absent
from every query unless ``get_by_email(..., include_password=True)`` asks
for it explicitly.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from app.exceptions import ConflictError
from app.models import User, fits_id

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_by_id(self, user_id: int) -> User | None:
        if not fits_id(user_id):
            return None
        return await self._db.get(User, user_id)

    async def get_by_email(self, email: str, include_password: bool = False) -> User | None:
        q = select(User).where(User.email == email)
        if include_password:
            q = q.options(undefer(User.hash_password))
        result = await self._db.execute(q)
        return result.scalar_one_or_none()

    async def add(self, email: str, hash_password: str, name: str) -> User:
        """
        Insert a user and return the persisted row.

        Raises ``ConflictError`` when the email is already taken, including
        the case where a concurrent signup won the race after our pre-check.
        """
        user = User(email=email, hash_password=hash_password, name=name)
        self._db.add(user)
        try:
            await self._db.flush()
        except IntegrityError as exc:
            logger.info("Duplicate signup rejected by unique constraint: %s", email)
            raise ConflictError("User already exists") from exc
        return user
