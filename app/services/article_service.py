"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Ownership (only the author may edit or delete) is checked by the router
  before it delegates here; this service assumes the caller has already
  resolved the author and the article.
- Detail and list reads go through the cache-aside pattern (Redis, then
  the database).  Every write invalidates the list pages, and edit/delete
  also drop the detail entry of the article before returning, so a
  successful response is never followed by a stale cached read.  The same
  invalidation is queued again for after the commit, since a concurrent
  read may re-cache the old row in between.
- ``edit`` re-reads the row after the UPDATE so ``updated_at`` and any
  other store-computed values are authoritative.
"""
import logging
import math
from collections.abc import Mapping
from functools import partial

from sqlalchemy import asc, desc

from app.cache import CacheManager, article_detail_key, article_list_key
from app.config import settings
from app.exceptions import NotFoundError
from app.models import Article, User
from app.repositories.article_repository import ArticleRepository
from app.schemas import ArticlePage, ArticleResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Sortable fields, keyed by both wire (camelCase) and attribute names.
SORTABLE_FIELDS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "description": "description",
    "content": "content",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}

SORT_DIRECTIONS = frozenset({"ASC", "DESC"})

EDITABLE_FIELDS = frozenset({"title", "description", "content"})


def build_order_by(sort: Mapping[str, str] | None) -> list:
    """
    Translate ``{field: "ASC" | "DESC"}`` into ORDER BY expressions.

    Fields are applied in mapping order; unknown fields are skipped.
    ``Article.id`` is appended as the final tiebreaker so page boundaries
    are stable even when the sort keys contain duplicates.
    """
    order_by = []
    seen: set[str] = set()
    for field, direction in (sort or {}).items():
        attr = SORTABLE_FIELDS.get(field)
        if attr is None or attr in seen:
            continue
        seen.add(attr)
        column = getattr(Article, attr)
        order_by.append(desc(column) if direction.upper() == "DESC" else asc(column))
    if "id" not in seen:
        order_by.append(asc(Article.id))
    return order_by


def _sort_cache_fragment(sort: Mapping[str, str] | None) -> str:
    if not sort:
        return "-"
    return ",".join(f"{field}:{direction.upper()}" for field, direction in sort.items())


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ArticleService:
    def __init__(self, articles: ArticleRepository, cache: CacheManager | None = None) -> None:
        self._articles = articles
        self._cache = cache

    async def get_by_id(self, article_id: int) -> ArticleResponse | None:
        """Return the article with its author, or None when it does not exist."""
        key = article_detail_key(article_id)
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached:
                return ArticleResponse.model_validate(cached)

        article = await self._articles.get_by_id(article_id)
        if article is None:
            return None

        response = ArticleResponse.model_validate(article)
        if self._cache is not None:
            await self._cache.set(key, response.model_dump(mode="json"), ttl=settings.CACHE_TTL_DETAIL)
        return response

    async def get_by_title(self, title: str) -> ArticleResponse | None:
        article = await self._articles.get_by_title(title)
        return ArticleResponse.model_validate(article) if article is not None else None

    async def add(self, author: User, title: str, description: str, content: str) -> ArticleResponse:
        """
        Persist a new article written by *author*.

        Raises ``ConflictError`` if another article took *title* between the
        caller's pre-check and this insert.
        """
        article = await self._articles.add(author, title, description, content)
        logger.info("Article %d created by user %d", article.id, author.id)
        await self._invalidate()
        return ArticleResponse.model_validate(article)

    async def edit(self, article_id: int, fields: Mapping[str, object]) -> ArticleResponse:
        """
        Apply the given subset of title/description/content and return the
        article as stored afterwards.

        Keys outside that subset are ignored.  Raises ``NotFoundError`` when
        no article has *article_id* at update time.
        """
        values = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        if values:
            matched = await self._articles.update(article_id, values)
            if not matched:
                raise NotFoundError("Article not found")

        article = await self._articles.get_by_id(article_id)
        if article is None:
            raise NotFoundError("Article not found")

        if values:
            logger.info("Article %d updated (%s)", article_id, ", ".join(sorted(values)))
            await self._invalidate(article_id)
        return ArticleResponse.model_validate(article)

    async def delete(self, article_id: int) -> None:
        """Delete the article; deleting a missing id is not an error here."""
        await self._articles.delete(article_id)
        logger.info("Article %d deleted", article_id)
        await self._invalidate(article_id)

    async def list(
        self,
        page_size: int = 10,
        page_index: int = 1,
        sort: Mapping[str, str] | None = None,
    ) -> ArticlePage:
        """
        Return page *page_index* (1-based) of *page_size* articles and the
        total number of articles.
        """
        key = article_list_key(page_index, page_size, _sort_cache_fragment(sort))
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached:
                return ArticlePage.model_validate(cached)

        items, total = await self._articles.find_page(
            offset=(page_index - 1) * page_size,
            limit=page_size,
            order_by=build_order_by(sort),
        )
        page = ArticlePage(
            items=[ArticleResponse.model_validate(a) for a in items],
            total=total,
            page_index=page_index,
            page_size=page_size,
            pages=math.ceil(total / page_size) if total > 0 else 0,
        )
        if self._cache is not None:
            await self._cache.set(key, page.model_dump(mode="json"), ttl=settings.CACHE_TTL_LIST)
        return page

    async def _invalidate(self, article_id: int | None = None) -> None:
        if self._cache is None:
            return
        await self._cache.invalidate_article(article_id)
        # A read racing the commit can re-cache the old row; drop it again once committed.
        self._articles.on_commit(partial(self._cache.invalidate_article, article_id))
