"""
Auth service: signup and signin.

bcrypt work is CPU-bound, so hashing and verification run in a worker
thread to keep the event loop responsive.  Neither path persists any
session state: a signin result is just a signed token.
"""
import asyncio
import logging

from app.exceptions import ConflictError, UnauthenticatedError
from app.repositories.user_repository import UserRepository
from app.schemas import UserResponse
from app.security import PasswordHasher, TokenIssuer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    def __init__(self, users: UserRepository, hasher: PasswordHasher, tokens: TokenIssuer) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens

    async def signin(self, email: str, password: str) -> str:
        """
        Return an access token for valid credentials.

        Unknown emails and wrong passwords both raise
        ``UnauthenticatedError`` with the same message.
        """
        user = await self._users.get_by_email(email, include_password=True)
        if user is None:
            logger.info("Sign-in rejected: unknown email")
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        if not await asyncio.to_thread(self._hasher.verify, password, user.hash_password):
            logger.info("Sign-in rejected: bad password for user %d", user.id)
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        return self._tokens.issue(user.id, user.email)

    async def signup(self, email: str, password: str, name: str) -> UserResponse:
        """
        Register a new user and return it without the password hash.

        Raises ``ConflictError`` if the email is already registered.
        """
        if await self._users.get_by_email(email) is not None:
            raise ConflictError("User already exists")

        hash_password = await asyncio.to_thread(self._hasher.hash, password)
        user = await self._users.add(email, hash_password, name)
        logger.info("User %d signed up", user.id)
        return UserResponse.model_validate(user)
