"""
Article service: paged reads, write-time rendering, and soft deletion.

Design notes
------------
- Every read path filters on ``status == NORMAL``; frozen and deleted rows
  are invisible to listings and point lookups alike.
- ``content`` holds ``render(raw_content)`` as of the last write.  Reads
  only select which column to expose (``ContentVariant``); they never
  re-render.
- Listings order by ``created_time`` newest first, with ``id`` as a
  deterministic tie-break.
- Edits and soft deletes are single ``UPDATE`` statements with no status
  guard, so they also apply to frozen or already-deleted rows.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import logging
import uuid

from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from article_store import rendering
from article_store.config import settings
from article_store.errors import ArticleNotFound, StoreError
from article_store.models import Article, ArticleStatus, Section
from article_store.paging import paginate
from article_store.schemas import (
    ArticlePage,
    ContentVariant,
    DeleteArticle,
    EditArticle,
    NewArticle,
    Permission,
)
from article_store.sessions import SessionStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article, variant: ContentVariant) -> dict:
    """Serialise an Article with ``content`` taken from the requested variant."""
    if variant is ContentVariant.RAW:
        content = article.raw_content
    else:
        content = article.content
    return {
        "id": article.id,
        "title": article.title,
        "content": content,
        "section_id": article.section_id,
        "author_id": article.author_id,
        "tags": article.tags,
        "created_time": article.created_time,
        "status": article.status,
    }


def _visible_articles():
    """Base SELECT for Normal articles, newest first."""
    return (
        select(Article)
        .where(Article.status == ArticleStatus.NORMAL)
        .order_by(desc(Article.created_time), desc(Article.id))
    )


async def _page_of(
    db: AsyncSession, stmt, page: int, page_size: int, variant: ContentVariant
) -> ArticlePage:
    result = await paginate(db, stmt, page, page_size)
    return ArticlePage(
        articles=[_article_to_dict(a, variant) for a in result.rows],
        total=result.total,
        max_page=result.max_page,
        page=page,
        page_size=page_size,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def list_by_section(
    db: AsyncSession,
    section_id: uuid.UUID,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
    variant: ContentVariant = ContentVariant.RENDERED,
) -> ArticlePage:
    """
    Return one page of Normal articles in *section_id*.

    Two SQL statements are issued: a COUNT over the filter and the
    OFFSET/LIMIT slice.  An empty section yields an empty page, not an error.
    """
    stmt = _visible_articles().where(Article.section_id == section_id)
    return await _page_of(db, stmt, page, page_size, variant)


async def list_by_section_type(
    db: AsyncSession,
    section_type: int,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
    variant: ContentVariant = ContentVariant.RENDERED,
) -> ArticlePage:
    """Return one page of Normal articles across every section of *section_type*."""
    stmt = (
        _visible_articles()
        .join(Section, Section.id == Article.section_id)
        .where(Section.section_type == section_type)
    )
    return await _page_of(db, stmt, page, page_size, variant)


async def list_all_by_section(
    db: AsyncSession,
    section_id: uuid.UUID,
    variant: ContentVariant = ContentVariant.RENDERED,
) -> list[dict]:
    """Return every Normal article in *section_id*, unpaginated."""
    stmt = _visible_articles().where(Article.section_id == section_id)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc
    return [_article_to_dict(a, variant) for a in result.scalars().all()]


async def get_by_id(
    db: AsyncSession,
    article_id: uuid.UUID,
    variant: ContentVariant = ContentVariant.RENDERED,
) -> dict:
    """
    Return the Normal article *article_id*.

    Raises ``ArticleNotFound`` when no visible row matches.
    """
    stmt = select(Article).where(
        Article.status == ArticleStatus.NORMAL,
        Article.id == article_id,
    )
    try:
        article = (await db.execute(stmt)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc
    if article is None:
        raise ArticleNotFound(article_id)
    return _article_to_dict(article, variant)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def insert_article(db: AsyncSession, data: NewArticle) -> uuid.UUID | None:
    """
    Render and persist a new Normal article.

    Returns the new article id, or None when the store rejects the insert
    (the failure is logged and the session rolled back).
    """
    article = Article(
        id=uuid.uuid4(),
        title=data.title,
        raw_content=data.raw_content,
        content=rendering.render(data.raw_content),
        section_id=data.section_id,
        author_id=data.author_id,
        tags=data.tags,
        status=ArticleStatus.NORMAL,
    )
    db.add(article)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.warning("Article insert failed: %s", exc)
        await db.rollback()
        return None

    logger.debug("Inserted article %s in section %s", article.id, article.section_id)
    return article.id


async def edit_article(db: AsyncSession, data: EditArticle) -> int:
    """
    Overwrite title, source, rendered content, and tags of *data.id*.

    Returns the number of rows affected (0 when the id does not exist).
    """
    stmt = (
        update(Article)
        .where(Article.id == data.id)
        .values(
            title=data.title,
            raw_content=data.raw_content,
            content=rendering.render(data.raw_content),
            tags=data.tags,
        )
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc

    logger.debug("Edited article %s (%d row(s))", data.id, result.rowcount)
    return result.rowcount


async def soft_delete(db: AsyncSession, article_id: uuid.UUID) -> int:
    """Mark *article_id* as Deleted.  Returns the number of rows affected."""
    stmt = (
        update(Article)
        .where(Article.id == article_id)
        .values(status=ArticleStatus.DELETED)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc

    logger.debug("Soft-deleted article %s (%d row(s))", article_id, result.rowcount)
    return result.rowcount


async def delete_with_permission(
    db: AsyncSession,
    data: DeleteArticle,
    session_token: str | None,
    permission: Permission,
    sessions: SessionStore,
) -> bool:
    """
    Soft-delete *data.article_id* if the caller is allowed to.

    Moderators and admins delete unconditionally.  Anyone else is resolved
    through the session store and may only delete when their identity
    matches ``data.user_id``.  Returns True whenever the UPDATE ran, even if
    it matched no row; False means refused or a store failure.

    Raises ``AuthResolutionError`` when the fallback lookup fails.
    """
    if not permission.is_elevated:
        identity = await sessions.get_identity(session_token)
        if identity.id != data.user_id:
            logger.info(
                "Delete of article %s refused: session user %s is not %s",
                data.article_id, identity.id, data.user_id,
            )
            return False

    try:
        await soft_delete(db, data.article_id)
    except StoreError as exc:
        logger.warning("Article delete failed for %s: %s", data.article_id, exc.detail)
        return False
    return True
