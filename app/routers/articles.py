from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.dependencies import (
    CurrentUserId,
    PaginationParams,
    get_article_service,
    get_user_repository,
)
from app.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.repositories.article_repository import AUTHOR_MISSING, TITLE_TAKEN
from app.repositories.user_repository import UserRepository
from app.schemas import (
    ArticleCreate,
    ArticleDeleteResponse,
    ArticlePage,
    ArticleResponse,
    ArticleUpdate,
)
from app.services.article_service import ArticleService

router = APIRouter(prefix="/article", tags=["articles"])

Service = Annotated[ArticleService, Depends(get_article_service)]


async def _get_owned_article(
    service: ArticleService, article_id: int, user_id: int, message: str, status_code: int
) -> ArticleResponse:
    """Fetch the article and make sure *user_id* is its author."""
    article = await service.get_by_id(article_id)
    if article is None:
        raise NotFoundError("Article not found")
    if article.author.id != user_id:
        raise ForbiddenError(message, status_code=status_code)
    return article


# Declared before "/{article_id}" so "list" is not parsed as an id.
@router.get("/list", response_model=ArticlePage)
async def list_articles(service: Service, pagination: PaginationParams = Depends()):
    return await service.list(pagination.page_size, pagination.page_index, pagination.sort)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: int, service: Service):
    article = await service.get_by_id(article_id)
    if article is None:
        raise NotFoundError("Article not found")
    return article


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    user_id: CurrentUserId,
    service: Service,
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    author = await users.get_by_id(user_id)
    if author is None:
        raise NotFoundError(AUTHOR_MISSING)
    if await service.get_by_title(data.title) is not None:
        raise ConflictError(TITLE_TAKEN)
    return await service.add(author, data.title, data.description, data.content)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def edit_article(
    article_id: int, data: ArticleUpdate, user_id: CurrentUserId, service: Service
):
    await _get_owned_article(
        service, article_id, user_id, "Only author can edit article", status.HTTP_400_BAD_REQUEST
    )
    return await service.edit(article_id, data.model_dump(exclude_unset=True))


@router.delete("/{article_id}", response_model=ArticleDeleteResponse)
async def delete_article(article_id: int, user_id: CurrentUserId, service: Service):
    await _get_owned_article(
        service, article_id, user_id, "Only author can delete article", status.HTTP_403_FORBIDDEN
    )
    await service.delete(article_id)
    return ArticleDeleteResponse(article_id=article_id, success=True)
