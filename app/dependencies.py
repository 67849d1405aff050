from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.config import settings
from app.database import get_db
from app.exceptions import UnauthenticatedError
from app.repositories.article_repository import ArticleRepository
from app.repositories.user_repository import UserRepository
from app.security import PasswordHasher, TokenIssuer
from app.services.article_service import SORT_DIRECTIONS, SORTABLE_FIELDS, ArticleService
from app.services.auth_service import AuthService

# auto_error=False so a missing header becomes our own 401 instead of
# FastAPI's default response.
bearer_scheme = HTTPBearer(auto_error=False)

# Largest page whose OFFSET still fits a signed 64-bit integer.
MAX_PAGE_INDEX = (2**63 - 1) // settings.MAX_PAGE_SIZE


def _parse_sort(expressions: list[str], request: Request) -> dict[str, str]:
    """
    Collect sort criteria from ``sort=field:DIR[,field:DIR]`` values, then
    from ``sort[field]=DIR`` query keys, each in the order given.
    """
    pairs: list[tuple[str, str]] = []
    for value in expressions:
        for expression in value.split(","):
            expression = expression.strip()
            if not expression:
                continue
            field, _, direction = expression.partition(":")
            pairs.append((field.strip(), direction.strip() or "ASC"))
    for key, value in request.query_params.multi_items():
        if key.startswith("sort[") and key.endswith("]"):
            pairs.append((key[5:-1], value.strip()))

    sort: dict[str, str] = {}
    for field, direction in pairs:
        if field not in SORTABLE_FIELDS:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Cannot sort by {field!r}",
            )
        if direction.upper() not in SORT_DIRECTIONS:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Sort direction must be ASC or DESC, got {direction!r}",
            )
        sort[field] = direction.upper()
    return sort


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates the article list
    query string.

    Attributes
    ----------
    page_index:
        1-based page number (``pageIndex``, default 1).
    page_size:
        Items per page (``pageSize``, default 10), at most
        ``settings.MAX_PAGE_SIZE``.
    sort:
        Ordered ``{field: "ASC" | "DESC"}`` mapping, or None when the
        caller asked for the default order.
    """

    def __init__(
        self,
        request: Request,
        page_index: int = Query(
            1,
            ge=1,
            le=MAX_PAGE_INDEX,
            alias="pageIndex",
            description="Page number (1-based).",
        ),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            alias="pageSize",
            description=f"Number of items returned per page (max {settings.MAX_PAGE_SIZE}).",
        ),
        sort: list[str] = Query(
            [],
            description="Sort criteria as field:ASC|DESC; repeat or comma-separate for several.",
        ),
    ) -> None:
        self.page_index = page_index
        self.page_size = page_size
        self.sort = _parse_sort(sort, request) or None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(
        settings.JWT_SECRET,
        expire_hours=settings.JWT_EXPIRE_HOURS,
        algorithm=settings.JWT_ALGORITHM,
    )


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> int:
    """Return the user id carried by the bearer token of the request."""
    if credentials is None:
        raise UnauthenticatedError("Not authenticated")
    return tokens.verify(credentials.credentials).user_id


CurrentUserId = Annotated[int, Depends(get_current_user_id)]


# ---------------------------------------------------------------------------
# Repositories and services
# ---------------------------------------------------------------------------

def get_user_repository(db: Annotated[AsyncSession, Depends(get_db)]) -> UserRepository:
    return UserRepository(db)


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthService:
    return AuthService(users, hasher, tokens)


def get_article_service(db: Annotated[AsyncSession, Depends(get_db)]) -> ArticleService:
    return ArticleService(ArticleRepository(db), cache)
