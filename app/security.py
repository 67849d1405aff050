"""
Password hashing and access-token handling.

Both collaborators are plain objects configured at construction time (work
factor, secret, expiry) so services never read settings themselves.
"""
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.exceptions import UnauthenticatedError
from app.schemas import TokenPayload

# bcrypt only looks at the first 72 bytes; recent releases raise instead of
# truncating, so both paths truncate identically.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """
    Salted one-way password hashing backed by bcrypt.

    ``verify`` relies on ``bcrypt.checkpw``, which compares in constant
    time, so a wrong password costs as much as a right one.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed stored hash
            return False


class TokenIssuer:
    """
    Signs and verifies HS256 access tokens.

    The subject claim carries the user id as a string (as RFC 7519
    requires); ``verify`` converts it back to ``int``.
    """

    def __init__(self, secret_key: str, expire_hours: int = 6, algorithm: str = "HS256") -> None:
        if not secret_key:
            raise ValueError("JWT secret key cannot be empty")
        self._secret_key = secret_key
        self._expire = timedelta(hours=expire_hours)
        self._algorithm = algorithm

    def issue(self, user_id: int, email: str, expires_delta: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self._expire),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Decode *token*; raise ``UnauthenticatedError`` if it is not acceptable."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
            return TokenPayload(
                user_id=int(payload["sub"]),
                email=payload.get("email"),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthenticatedError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise UnauthenticatedError("Invalid token") from exc
        except (KeyError, ValueError) as exc:
            raise UnauthenticatedError("Malformed token payload") from exc
