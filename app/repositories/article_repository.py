"""
Article repository: persistence for the Article aggregate.

Reads that hand articles back to callers always eager-load ``author`` with
``joinedload``; the relationship is ``noload`` on the model so nothing is
ever fetched implicitly.
"""
from collections.abc import Awaitable, Callable, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.database import after_commit
from app.exceptions import ConflictError, NotFoundError
from app.models import Article, User, fits_id

TITLE_TAKEN = "Article with given title already exists"
AUTHOR_MISSING = "Author not found"


def _violates_author_fk(exc: IntegrityError) -> bool:
    # SQLite: "FOREIGN KEY constraint failed"; PostgreSQL names the constraint.
    message = str(exc.orig).lower()
    return "foreign key" in message or "fk_article_author_id_user" in message


class ArticleRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def on_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Run *callback* once the surrounding transaction has committed."""
        after_commit(self._db, callback)

    async def get_by_id(self, article_id: int) -> Article | None:
        """
        Return the article with its author, read from the database.

        ``populate_existing`` refreshes an instance already present in the
        session so values written by a bulk UPDATE (``updated_at``) are
        not served stale from the identity map.
        """
        if not fits_id(article_id):
            return None
        q = (
            select(Article)
            .where(Article.id == article_id)
            .options(joinedload(Article.author))
            .execution_options(populate_existing=True)
        )
        result = await self._db.execute(q)
        return result.unique().scalar_one_or_none()

    async def get_by_title(self, title: str) -> Article | None:
        q = select(Article).where(Article.title == title).options(joinedload(Article.author))
        result = await self._db.execute(q)
        return result.unique().scalar_one_or_none()

    async def add(self, author: User, title: str, description: str, content: str) -> Article:
        article = Article(author=author, title=title, description=description, content=content)
        self._db.add(article)
        try:
            await self._db.flush()
        except IntegrityError as exc:
            if _violates_author_fk(exc):
                raise NotFoundError(AUTHOR_MISSING) from exc
            raise ConflictError(TITLE_TAKEN) from exc
        return article

    async def update(self, article_id: int, values: dict) -> int:
        """Apply *values* to one row and return the number of rows matched."""
        if not fits_id(article_id):
            return 0
        stmt = update(Article).where(Article.id == article_id).values(**values)
        try:
            result = await self._db.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError(TITLE_TAKEN) from exc
        return result.rowcount

    async def delete(self, article_id: int) -> None:
        if not fits_id(article_id):
            return
        await self._db.execute(delete(Article).where(Article.id == article_id))

    async def find_page(
        self, offset: int, limit: int, order_by: Sequence = ()
    ) -> tuple[list[Article], int]:
        """
        Return one page of articles plus the total row count.

        Two statements are issued: a COUNT over the whole table and the
        paged SELECT with the author JOIN.
        """
        total: int = (
            await self._db.execute(select(func.count()).select_from(Article))
        ).scalar_one()

        q = (
            select(Article)
            .options(joinedload(Article.author))
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        result = await self._db.execute(q)
        return list(result.unique().scalars().all()), total
